"""
Token Vesting Ledger Unlock Schedules

A schedule is an ordered list of tranches, each an absolute unlock time
and the cumulative share of the allocation released once that time has
passed. Shares are basis points; amounts are always rounded down.
"""

from __future__ import annotations
import bisect
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from vesting.constants import (
    BPS_DENOMINATOR,
    PRESALE_TRANCHES,
    TEAM_TRANCHES,
    TREASURY_TRANCHES,
)
from vesting.core.state import Category
from vesting.errors import InvalidScheduleError


@dataclass(frozen=True, slots=True)
class Tranche:
    """One step of a schedule."""
    unlock_timestamp: int       # Unix seconds
    cumulative_bps: int         # Cumulative share unlocked, out of BPS_DENOMINATOR

    def to_list(self) -> List[int]:
        return [self.unlock_timestamp, self.cumulative_bps]


@dataclass(frozen=True)
class ScheduleDefinition:
    """
    Immutable unlock schedule for one category.

    Rules:
    - at least one tranche
    - timestamps strictly increasing
    - cumulative shares strictly increasing, within [0, BPS_DENOMINATOR]
    - final share equals BPS_DENOMINATOR
    """
    category: Category
    tranches: Tuple[Tranche, ...]

    def __post_init__(self):
        name = self.category.value
        if not self.tranches:
            raise InvalidScheduleError(name, "no tranches")

        prev: Optional[Tranche] = None
        for tranche in self.tranches:
            if tranche.unlock_timestamp < 0:
                raise InvalidScheduleError(name, f"negative timestamp {tranche.unlock_timestamp}")
            if not 0 <= tranche.cumulative_bps <= BPS_DENOMINATOR:
                raise InvalidScheduleError(
                    name, f"share {tranche.cumulative_bps} outside [0, {BPS_DENOMINATOR}]"
                )
            if prev is not None:
                if tranche.unlock_timestamp <= prev.unlock_timestamp:
                    raise InvalidScheduleError(
                        name,
                        f"timestamps not increasing: {prev.unlock_timestamp} -> {tranche.unlock_timestamp}"
                    )
                if tranche.cumulative_bps <= prev.cumulative_bps:
                    raise InvalidScheduleError(
                        name,
                        f"shares not increasing: {prev.cumulative_bps} -> {tranche.cumulative_bps}"
                    )
            prev = tranche

        if self.tranches[-1].cumulative_bps != BPS_DENOMINATOR:
            raise InvalidScheduleError(
                name, f"final share {self.tranches[-1].cumulative_bps} != {BPS_DENOMINATOR}"
            )

    @classmethod
    def from_pairs(
        cls,
        category: Category,
        pairs: Iterable[Tuple[int, int]]
    ) -> "ScheduleDefinition":
        """Build from (unlock_timestamp, cumulative_bps) pairs."""
        return cls(
            category=category,
            tranches=tuple(Tranche(int(ts), int(bps)) for ts, bps in pairs),
        )

    @property
    def cliff(self) -> int:
        """Timestamp of the first tranche; nothing unlocks before it."""
        return self.tranches[0].unlock_timestamp

    @property
    def end(self) -> int:
        """Timestamp at which the whole allocation is unlocked."""
        return self.tranches[-1].unlock_timestamp

    def fraction_at(self, now: int) -> int:
        """Cumulative bps of the latest tranche with unlock_timestamp <= now."""
        timestamps = [t.unlock_timestamp for t in self.tranches]
        idx = bisect.bisect_right(timestamps, now)
        if idx == 0:
            return 0
        return self.tranches[idx - 1].cumulative_bps

    def unlocked_at(self, total_allocation: int, now: int) -> int:
        """Tokens unlocked for an allocation at time `now`, rounded down."""
        return total_allocation * self.fraction_at(now) // BPS_DENOMINATOR

    def next_tranche(self, now: int) -> Optional[Tranche]:
        """First tranche strictly after `now`, or None once fully unlocked."""
        for tranche in self.tranches:
            if tranche.unlock_timestamp > now:
                return tranche
        return None

    def to_list(self) -> List[List[int]]:
        return [t.to_list() for t in self.tranches]


def default_schedules() -> Dict[Category, ScheduleDefinition]:
    """Reference schedules for every category."""
    return {
        Category.TREASURY: ScheduleDefinition.from_pairs(Category.TREASURY, TREASURY_TRANCHES),
        Category.TEAM: ScheduleDefinition.from_pairs(Category.TEAM, TEAM_TRANCHES),
        Category.PRESALE: ScheduleDefinition.from_pairs(Category.PRESALE, PRESALE_TRANCHES),
    }
