"""
Token Vesting Ledger State Structures

Member records and their derived vesting / settlement status.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from vesting.core.types import Address


class Category(Enum):
    """Member category; selects the unlock schedule."""
    TREASURY = "treasury"
    TEAM = "team"
    PRESALE = "presale"

    @classmethod
    def parse(cls, value) -> "Category":
        """Accept a Category, its value, or its name in any case."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "").replace("_", "")
        for category in cls:
            if text in (category.value, category.name.lower()):
                return category
        raise ValueError(f"Unknown category: {value!r}")


class VestingStatus(Enum):
    """Unlock progress of a member."""
    REGISTERED = "registered"
    PARTIALLY_UNLOCKED = "partially_unlocked"
    FULLY_UNLOCKED = "fully_unlocked"


class SettlementStatus(Enum):
    """Whether every unlocked token has been withdrawn."""
    OWED = "owed"
    SETTLED = "settled"


@dataclass
class MemberRecord:
    """
    Allocation record for a single member.

    Invariant: 0 <= withdrawn_amount <= unlocked_amount <= total_allocation.
    unlocked_amount is raised only by the unlock engine, withdrawn_amount
    only by the withdrawal processor.
    """
    # Identity
    address: Address
    category: Category

    # Allocation (atomic units)
    total_allocation: int
    unlocked_amount: int = 0
    withdrawn_amount: int = 0

    @property
    def withdrawable(self) -> int:
        """Unlocked tokens not yet transferred out."""
        return self.unlocked_amount - self.withdrawn_amount

    @property
    def locked(self) -> int:
        """Tokens still waiting on a future tranche."""
        return self.total_allocation - self.unlocked_amount

    @property
    def vesting_status(self) -> VestingStatus:
        if self.unlocked_amount == 0:
            return VestingStatus.REGISTERED
        if self.unlocked_amount < self.total_allocation:
            return VestingStatus.PARTIALLY_UNLOCKED
        return VestingStatus.FULLY_UNLOCKED

    @property
    def settlement_status(self) -> SettlementStatus:
        if self.withdrawn_amount < self.unlocked_amount:
            return SettlementStatus.OWED
        return SettlementStatus.SETTLED

    def is_terminal(self) -> bool:
        """Fully unlocked and fully withdrawn."""
        return (
            self.vesting_status == VestingStatus.FULLY_UNLOCKED
            and self.settlement_status == SettlementStatus.SETTLED
        )

    def check_invariants(self) -> bool:
        return 0 <= self.withdrawn_amount <= self.unlocked_amount <= self.total_allocation

    def as_tuple(self) -> tuple:
        """(category, total_allocation, unlocked_amount, withdrawn_amount)"""
        return (
            self.category,
            self.total_allocation,
            self.unlocked_amount,
            self.withdrawn_amount,
        )

    def copy(self) -> "MemberRecord":
        return MemberRecord(
            address=self.address,
            category=self.category,
            total_allocation=self.total_allocation,
            unlocked_amount=self.unlocked_amount,
            withdrawn_amount=self.withdrawn_amount,
        )

    def to_dict(self) -> dict:
        return {
            "address": str(self.address),
            "category": self.category.value,
            "total_allocation": self.total_allocation,
            "unlocked_amount": self.unlocked_amount,
            "withdrawn_amount": self.withdrawn_amount,
            "withdrawable": self.withdrawable,
            "vesting_status": self.vesting_status.value,
            "settlement_status": self.settlement_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MemberRecord":
        return cls(
            address=Address.from_hex(data["address"]),
            category=Category.parse(data["category"]),
            total_allocation=int(data["total_allocation"]),
            unlocked_amount=int(data.get("unlocked_amount", 0)),
            withdrawn_amount=int(data.get("withdrawn_amount", 0)),
        )
