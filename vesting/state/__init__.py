"""
Token Vesting Ledger State

The vault and the components it composes: admin gate, membership
registry, unlock engine, withdrawal processor, and SQLite persistence.
"""

from vesting.state.admin import AdminGate
from vesting.state.registry import MembershipRegistry
from vesting.state.engine import UnlockEngine, UnlockReport, UnlockUpdate
from vesting.state.withdrawal import WithdrawalProcessor
from vesting.state.vault import MemberData, TokenVesting, VaultInfo
from vesting.state.storage import StateStorage

__all__ = [
    # Vault
    "TokenVesting",
    "MemberData",
    "VaultInfo",
    # Components
    "AdminGate",
    "MembershipRegistry",
    "UnlockEngine",
    "UnlockReport",
    "UnlockUpdate",
    "WithdrawalProcessor",
    # Storage
    "StateStorage",
]
