"""
Token Vesting Ledger Hash Functions

Keccak-256 with the original (pre-FIPS 202) padding, as used for
160-bit addresses. Not interchangeable with hashlib.sha3_256.
"""

from __future__ import annotations
from typing import Union

from Crypto.Hash import keccak

from vesting.constants import KECCAK_256_OUTPUT_SIZE


def keccak_256(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """
    Keccak-256 hash function.

    Args:
        data: Input data to hash

    Returns:
        bytes: 32-byte hash output
    """
    hasher = keccak.new(digest_bits=KECCAK_256_OUTPUT_SIZE * 8)
    hasher.update(bytes(data))
    return hasher.digest()


def keccak_256_hex(data: Union[bytes, bytearray, memoryview]) -> str:
    """Keccak-256 returning lowercase hex."""
    return keccak_256(data).hex()


class KeccakBuilder:
    """
    Builder pattern for constructing hashes from multiple inputs.

    Example:
        digest = KeccakBuilder().update(b"deployer").update_u64(0).finalize()
    """

    def __init__(self):
        self._hasher = keccak.new(digest_bits=KECCAK_256_OUTPUT_SIZE * 8)

    def update(self, data: bytes) -> "KeccakBuilder":
        """Add data to the hash computation."""
        self._hasher.update(data)
        return self

    def update_u64(self, value: int) -> "KeccakBuilder":
        """Add a u64 (big-endian) to the hash computation."""
        self._hasher.update(value.to_bytes(8, "big"))
        return self

    def finalize(self) -> bytes:
        """Complete the hash computation and return raw bytes."""
        return self._hasher.digest()
