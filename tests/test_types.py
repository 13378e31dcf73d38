"""
Token Vesting Ledger Type Tests
"""

import pytest

from vesting.core.types import Address, parse_address, to_checksum
from vesting.crypto.hash import keccak_256, keccak_256_hex, KeccakBuilder


class TestKeccak:
    """Tests for keccak-256 helpers."""

    def test_empty_input(self):
        """Keccak-256 of empty input (not SHA3-256)."""
        assert keccak_256_hex(b"") == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_output_size(self):
        assert len(keccak_256(b"vesting")) == 32

    def test_builder_matches_one_shot(self):
        """Builder over split input equals hashing the concatenation."""
        built = KeccakBuilder().update(b"vest").update(b"ing").finalize()
        assert built == keccak_256(b"vesting")

    def test_builder_u64_big_endian(self):
        built = KeccakBuilder().update_u64(1).finalize()
        assert built == keccak_256(b"\x00" * 7 + b"\x01")


class TestAddress:
    """Tests for Address."""

    CHECKSUMMED = [
        "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
        "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
        "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
        "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb",
    ]

    def test_checksum_vectors(self):
        """EIP-55 reference vectors render back unchanged."""
        for text in self.CHECKSUMMED:
            assert str(Address.from_hex(text)) == text

    def test_lowercase_accepted(self):
        text = self.CHECKSUMMED[0]
        assert Address.from_hex(text.lower()) == Address.from_hex(text)

    def test_uppercase_body_accepted(self):
        text = self.CHECKSUMMED[1]
        assert Address.from_hex("0x" + text[2:].upper()) == Address.from_hex(text)

    def test_bad_checksum_rejected(self):
        """Mixed case with a flipped letter fails the checksum."""
        text = self.CHECKSUMMED[0]
        i = next(i for i, c in enumerate(text) if i >= 2 and c.isalpha())
        broken = text[:i] + text[i].swapcase() + text[i + 1:]
        with pytest.raises(ValueError, match="checksum"):
            Address.from_hex(broken)

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            Address.from_hex("0x1234")
        with pytest.raises(ValueError):
            Address(bytes(19))

    def test_zero(self):
        zero = Address.zero()
        assert zero.is_zero()
        assert zero.hex() == "0x" + "00" * 20

    def test_from_label_deterministic(self):
        assert Address.from_label("alice") == Address.from_label("alice")
        assert Address.from_label("alice") != Address.from_label("bob")

    def test_hashable(self):
        """Addresses work as dict keys."""
        a = Address.from_label("alice")
        balances = {a: 5}
        assert balances[Address(a.data)] == 5

    def test_to_checksum_function(self):
        address = Address.from_hex(self.CHECKSUMMED[2])
        assert to_checksum(address.data) == self.CHECKSUMMED[2]


class TestParseAddress:
    """Tests for parse_address coercion."""

    def test_passthrough(self):
        a = Address.from_label("alice")
        assert parse_address(a) is a

    def test_bytes(self):
        a = Address.from_label("alice")
        assert parse_address(a.data) == a

    def test_string(self):
        a = Address.from_label("alice")
        assert parse_address(str(a)) == a

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            parse_address(12345)
