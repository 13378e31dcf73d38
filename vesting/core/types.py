"""
Token Vesting Ledger Identity Types

Addresses are 160-bit identities rendered with the EIP-55 mixed-case
checksum.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from vesting.constants import ADDRESS_SIZE
from vesting.crypto.hash import keccak_256, keccak_256_hex


def to_checksum(data: bytes) -> str:
    """Render 20 address bytes as an EIP-55 checksummed hex string."""
    lower = data.hex()
    digest = keccak_256_hex(lower.encode("ascii"))
    chars = [
        c.upper() if c.isalpha() and int(digest[i], 16) >= 8 else c
        for i, c in enumerate(lower)
    ]
    return "0x" + "".join(chars)


@dataclass(frozen=True, slots=True)
class Address:
    """
    Account or contract identity.

    SIZE: 20 bytes
    SERIALIZATION: raw bytes, text form is 0x-prefixed EIP-55 hex
    """
    data: bytes = field(default_factory=lambda: bytes(ADDRESS_SIZE))

    def __post_init__(self):
        if len(self.data) != ADDRESS_SIZE:
            raise ValueError(f"Address must be {ADDRESS_SIZE} bytes, got {len(self.data)}")

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return self.checksum()

    def __repr__(self) -> str:
        return f"Address({self.checksum()})"

    def hex(self) -> str:
        return "0x" + self.data.hex()

    def checksum(self) -> str:
        return to_checksum(self.data)

    def is_zero(self) -> bool:
        return self.data == bytes(ADDRESS_SIZE)

    @classmethod
    def zero(cls) -> Address:
        return cls(bytes(ADDRESS_SIZE))

    @classmethod
    def from_hex(cls, hex_string: str) -> Address:
        """
        Parse a 0x-prefixed (or bare) hex address.

        All-lowercase and all-uppercase input is accepted as-is; mixed-case
        input must carry a valid EIP-55 checksum.
        """
        body = hex_string[2:] if hex_string[:2] in ("0x", "0X") else hex_string
        if len(body) != ADDRESS_SIZE * 2:
            raise ValueError(f"Address hex must be {ADDRESS_SIZE * 2} characters, got {len(body)}")

        data = bytes.fromhex(body)
        address = cls(data)

        if body != body.lower() and body != body.upper():
            if address.checksum()[2:] != body:
                raise ValueError(f"Invalid address checksum: {hex_string}")

        return address

    @classmethod
    def from_public_key(cls, public_key: bytes) -> Address:
        """Derive address as the last 20 bytes of keccak256(public_key)."""
        return cls(keccak_256(public_key)[-ADDRESS_SIZE:])

    @classmethod
    def from_label(cls, label: str) -> Address:
        """Deterministic address for a human-readable label (fixtures, genesis)."""
        return cls.from_public_key(label.encode("utf-8"))


def parse_address(value) -> Address:
    """Coerce an Address, hex string or raw bytes into an Address."""
    if isinstance(value, Address):
        return value
    if isinstance(value, (bytes, bytearray)):
        return Address(bytes(value))
    if isinstance(value, str):
        return Address.from_hex(value)
    raise ValueError(f"Cannot interpret {type(value).__name__} as an address")
