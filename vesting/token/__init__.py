"""
Token Vesting Ledger Token Service
"""

from vesting.token.ledger import Token, TokenService

__all__ = [
    "Token",
    "TokenService",
]
