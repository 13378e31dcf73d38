"""
Token Vesting Ledger Core Data Structures
"""

from vesting.core.types import Address, parse_address, to_checksum
from vesting.core.state import (
    Category,
    MemberRecord,
    SettlementStatus,
    VestingStatus,
)
from vesting.core.schedule import ScheduleDefinition, Tranche, default_schedules

__all__ = [
    # Types
    "Address",
    "parse_address",
    "to_checksum",
    # State
    "Category",
    "MemberRecord",
    "SettlementStatus",
    "VestingStatus",
    # Schedules
    "ScheduleDefinition",
    "Tranche",
    "default_schedules",
]
