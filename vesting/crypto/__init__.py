"""
Token Vesting Ledger Cryptographic Primitives
"""

from vesting.crypto.hash import keccak_256, keccak_256_hex, KeccakBuilder

__all__ = [
    "keccak_256",
    "keccak_256_hex",
    "KeccakBuilder",
]
