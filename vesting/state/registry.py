"""
Token Vesting Ledger Membership Registry

Member records keyed by address, with the add-time pool check.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from vesting.core.state import Category, MemberRecord
from vesting.core.types import Address
from vesting.errors import (
    AllocationExceedsPoolError,
    DuplicateMemberError,
    InvalidAmountError,
    MemberNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class MembershipRegistry:
    """
    Manages member records with efficient lookup.

    Records are created once and never deleted. The running allocation
    total is kept alongside so the pool check is O(1).
    """
    _members: Dict[Address, MemberRecord] = field(default_factory=dict)
    _total_allocation: int = 0

    def get(self, address: Address) -> Optional[MemberRecord]:
        """Get record by address."""
        return self._members.get(address)

    def require(self, address: Address) -> MemberRecord:
        """Get record by address or raise MemberNotFoundError."""
        record = self._members.get(address)
        if record is None:
            raise MemberNotFoundError(address)
        return record

    def exists(self, address: Address) -> bool:
        return address in self._members

    def register(
        self,
        address: Address,
        category: Category,
        amount: int,
        pool_balance: int
    ) -> MemberRecord:
        """
        Create a member record.

        Admission rule: the sum of every total_allocation (withdrawn
        amounts included) plus `amount` must not exceed `pool_balance`.
        Withdrawals shrink the pool but not the sum, so this is stricter
        than the solvency bound in TokenVesting.check_invariants and
        every accepted record keeps that bound.

        Args:
            address: Member identity
            category: Schedule category, fixed for the record's lifetime
            amount: Total allocation in atomic units
            pool_balance: Tokens currently held by the vault

        Returns:
            The new record

        Raises:
            InvalidAmountError: amount <= 0
            DuplicateMemberError: address already registered
            AllocationExceedsPoolError: allocations would exceed the pool
        """
        if amount <= 0:
            raise InvalidAmountError(amount)

        existing = self._members.get(address)
        if existing is not None:
            raise DuplicateMemberError(address, existing.category.value)

        if self._total_allocation + amount > pool_balance:
            raise AllocationExceedsPoolError(self._total_allocation, amount, pool_balance)

        record = MemberRecord(address=address, category=category, total_allocation=amount)
        self._members[address] = record
        self._total_allocation += amount

        logger.info(
            f"Registered {category.value} member {address}, allocation={amount}, "
            f"total_allocated={self._total_allocation}"
        )
        return record

    def addresses(self) -> List[Address]:
        return list(self._members.keys())

    def iterate(self) -> Iterator[MemberRecord]:
        return iter(self._members.values())

    def by_category(self, category: Category) -> List[MemberRecord]:
        return [r for r in self._members.values() if r.category == category]

    def count(self) -> int:
        return len(self._members)

    def total_allocation(self) -> int:
        return self._total_allocation

    def total_unlocked(self) -> int:
        return sum(r.unlocked_amount for r in self._members.values())

    def total_withdrawn(self) -> int:
        return sum(r.withdrawn_amount for r in self._members.values())

    def copy(self) -> "MembershipRegistry":
        """Create a deep copy of the registry."""
        new_registry = MembershipRegistry()
        for address, record in self._members.items():
            new_registry._members[address] = record.copy()
        new_registry._total_allocation = self._total_allocation
        return new_registry

    def to_dict(self) -> Dict[str, dict]:
        """Export records keyed by checksum address."""
        return {str(addr): record.to_dict() for addr, record in self._members.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, dict]) -> "MembershipRegistry":
        """Import records exported with to_dict()."""
        registry = cls()
        for record_data in data.values():
            record = MemberRecord.from_dict(record_data)
            registry._members[record.address] = record
            registry._total_allocation += record.total_allocation
        return registry
