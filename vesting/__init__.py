"""
Token Vesting Ledger

Tranche-based token vesting vault: admins register treasury, team and
presale members against a pooled token balance, unlock passes release
allocations on fixed dates, and members withdraw what has unlocked.
"""

__version__ = "1.0.0"
__author__ = "Token Vesting Ledger Team"

from vesting.constants import PROTOCOL_VERSION, DECIMALS, ONE_TOKEN

__all__ = [
    "PROTOCOL_VERSION",
    "DECIMALS",
    "ONE_TOKEN",
    "__version__",
]
