"""
Token Vesting Ledger Unlock Engine

Raises each member's unlocked amount to what its category schedule has
released as of one time snapshot. Targets for every member are computed
before any record is touched, so a call commits fully or not at all.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from vesting.core.schedule import ScheduleDefinition, Tranche, default_schedules
from vesting.core.state import Category
from vesting.core.types import Address
from vesting.errors import InvalidScheduleError, NoMembersError
from vesting.state.registry import MembershipRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnlockUpdate:
    """Planned increase of one member's unlocked amount."""
    address: Address
    previous: int
    target: int

    @property
    def delta(self) -> int:
        return self.target - self.previous


@dataclass
class UnlockReport:
    """Result of one unlock pass."""
    timestamp: int
    members_checked: int
    updates: List[UnlockUpdate] = field(default_factory=list)

    @property
    def total_unlocked(self) -> int:
        return sum(u.delta for u in self.updates)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "members_checked": self.members_checked,
            "members_updated": len(self.updates),
            "total_unlocked": self.total_unlocked,
            "updates": [
                {"address": str(u.address), "previous": u.previous, "target": u.target}
                for u in self.updates
            ],
        }


@dataclass
class UnlockEngine:
    """Schedule state machine over the membership registry."""
    schedules: Dict[Category, ScheduleDefinition] = field(default_factory=default_schedules)

    def __post_init__(self):
        for category in Category:
            schedule = self.schedules.get(category)
            if schedule is None:
                raise InvalidScheduleError(category.value, "missing schedule")
            if schedule.category != category:
                raise InvalidScheduleError(
                    category.value, f"schedule is defined for {schedule.category.value}"
                )

    def schedule_for(self, category: Category) -> ScheduleDefinition:
        return self.schedules[category]

    def fraction_at(self, category: Category, now: int) -> int:
        """Cumulative bps released for a category at `now`."""
        return self.schedules[category].fraction_at(now)

    def next_unlock(self, category: Category, now: int) -> Optional[Tranche]:
        return self.schedules[category].next_tranche(now)

    def plan(self, registry: MembershipRegistry, now: int) -> List[UnlockUpdate]:
        """
        Compute the increases an unlock at `now` would apply.

        A member whose target does not exceed its current unlocked amount
        is left out, which makes repeated passes at the same time no-ops.
        """
        updates = []
        for record in registry.iterate():
            target = self.schedules[record.category].unlocked_at(record.total_allocation, now)
            if target > record.unlocked_amount:
                updates.append(UnlockUpdate(record.address, record.unlocked_amount, target))
        return updates

    def apply(self, registry: MembershipRegistry, now: int) -> UnlockReport:
        """
        Advance every member to its schedule target at `now`.

        Raises:
            NoMembersError: registry is empty
        """
        if registry.count() == 0:
            raise NoMembersError()

        updates = self.plan(registry, now)
        for update in updates:
            record = registry.require(update.address)
            record.unlocked_amount = update.target
            logger.debug(
                f"Unlocked {update.delta} for {update.address} "
                f"({record.unlocked_amount}/{record.total_allocation})"
            )

        report = UnlockReport(
            timestamp=now,
            members_checked=registry.count(),
            updates=updates,
        )
        logger.info(
            f"Unlock at {now}: {len(updates)}/{report.members_checked} members advanced, "
            f"total={report.total_unlocked}"
        )
        return report
