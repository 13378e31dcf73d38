"""
Token Vesting Ledger Vault

The vesting contract: one instance owns the admin set, the membership
registry and the unlock schedules, and holds the pooled tokens at its
own address on the token ledger.

Every public operation checks permissions first, validates second and
mutates last. A failed call leaves registry, admin set and balances as
they were.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional

from vesting.clock import Clock, SystemClock
from vesting.core.schedule import ScheduleDefinition, Tranche
from vesting.core.state import Category, MemberRecord
from vesting.core.types import Address
from vesting.state.admin import AdminGate
from vesting.state.engine import UnlockEngine, UnlockReport
from vesting.state.registry import MembershipRegistry
from vesting.state.withdrawal import WithdrawalProcessor
from vesting.token.ledger import TokenService

logger = logging.getLogger(__name__)


class MemberData(NamedTuple):
    """Read-only view of a member record."""
    category: Category
    total_allocation: int
    unlocked_amount: int
    withdrawn_amount: int


@dataclass
class VaultInfo:
    """Summary of vault state."""
    address: Address
    owner: Address
    member_count: int
    admin_count: int
    total_allocation: int
    total_unlocked: int
    total_withdrawn: int
    contract_balance: int
    open_unlock: bool

    def to_dict(self) -> dict:
        return {
            "address": str(self.address),
            "owner": str(self.owner),
            "member_count": self.member_count,
            "admin_count": self.admin_count,
            "total_allocation": self.total_allocation,
            "total_unlocked": self.total_unlocked,
            "total_withdrawn": self.total_withdrawn,
            "contract_balance": self.contract_balance,
            "open_unlock": self.open_unlock,
        }


class TokenVesting:
    """
    Token vesting vault.

    Args:
        token: Token ledger holding the pool
        address: The vault's own address on the token ledger
        owner: Identity allowed to manage admins
        clock: Current-time source for unlock passes
        schedules: Per-category schedules (reference schedules if omitted)
        open_unlock: Let any caller trigger unlock_token (admin-only if False)
    """

    def __init__(
        self,
        token: TokenService,
        address: Address,
        owner: Address,
        clock: Optional[Clock] = None,
        schedules: Optional[Dict[Category, ScheduleDefinition]] = None,
        open_unlock: bool = False
    ):
        self.token = token
        self.address = address
        self.clock = clock or SystemClock()
        self.open_unlock = open_unlock

        self.gate = AdminGate(owner=owner)
        self.registry = MembershipRegistry()
        self.engine = UnlockEngine(schedules) if schedules is not None else UnlockEngine()
        self.withdrawals = WithdrawalProcessor(token=token, vault_address=address)

        logger.info(f"Vesting vault deployed at {address}, owner={owner}")

    @property
    def owner(self) -> Address:
        return self.gate.owner

    # ==========================================================================
    # Admin Gate
    # ==========================================================================

    def add_admin(self, caller: Address, identity: Address) -> None:
        """Grant the admin role. Owner only; AlreadyAdminError on repeat."""
        self.gate.add_admin(caller, identity)

    def is_admin(self, identity: Address) -> bool:
        return self.gate.is_admin(identity)

    def admins(self) -> List[Address]:
        return self.gate.admins()

    # ==========================================================================
    # Membership Registry
    # ==========================================================================

    def add_member(
        self,
        caller: Address,
        address: Address,
        category: Category,
        amount: int
    ) -> MemberRecord:
        """Register a member under `category`. Admin only."""
        self.gate.require_admin(caller, f"add_{category.value}_member")
        return self.registry.register(
            address,
            category,
            amount,
            pool_balance=self.get_contract_balance(),
        )

    def add_treasury_member(self, caller: Address, address: Address, amount: int) -> MemberRecord:
        return self.add_member(caller, address, Category.TREASURY, amount)

    def add_team_member(self, caller: Address, address: Address, amount: int) -> MemberRecord:
        return self.add_member(caller, address, Category.TEAM, amount)

    def add_presale_member(self, caller: Address, address: Address, amount: int) -> MemberRecord:
        return self.add_member(caller, address, Category.PRESALE, amount)

    def get_member_data(self, address: Address) -> MemberData:
        """
        (category, total_allocation, unlocked_amount, withdrawn_amount)

        Raises:
            MemberNotFoundError: address is not registered
        """
        return MemberData(*self.registry.require(address).as_tuple())

    def get_member(self, address: Address) -> MemberRecord:
        """Copy of the full record, including derived status."""
        return self.registry.require(address).copy()

    def withdrawable(self, address: Address) -> int:
        return self.registry.require(address).withdrawable

    def member_count(self) -> int:
        return self.registry.count()

    def total_allocation(self) -> int:
        return self.registry.total_allocation()

    def members(self) -> List[MemberRecord]:
        return [r.copy() for r in self.registry.iterate()]

    # ==========================================================================
    # Unlock Engine
    # ==========================================================================

    def require_unlock_permission(self, caller: Address) -> None:
        """Admin check for unlock_token, skipped when unlock is open."""
        if not self.open_unlock:
            self.gate.require_admin(caller, "unlock_token")

    def unlock_token(self, caller: Address, now: Optional[int] = None) -> UnlockReport:
        """
        Advance every member to its schedule target as of now.

        Admin only unless the vault was deployed with open_unlock.
        The clock is read once (unless `now` is given, e.g. read
        asynchronously by the caller); that reading is used for every member.

        Raises:
            UnauthorizedError: caller is not an admin (and unlock is not open)
            NoMembersError: no members registered
        """
        self.require_unlock_permission(caller)
        if now is None:
            now = self.clock.now()
        return self.engine.apply(self.registry, now)

    def schedule_for(self, category: Category) -> ScheduleDefinition:
        return self.engine.schedule_for(category)

    def next_unlock(self, category: Category) -> Optional[Tranche]:
        return self.engine.next_unlock(category, self.clock.now())

    # ==========================================================================
    # Withdrawal Processor
    # ==========================================================================

    def withdraw_by_member(self, caller: Address) -> int:
        """
        Transfer the caller's unlocked, unwithdrawn tokens to the caller.

        Returns:
            Amount transferred
        """
        return self.withdrawals.withdraw(self.registry, caller)

    def get_contract_balance(self) -> int:
        return self.withdrawals.contract_balance()

    # ==========================================================================
    # Introspection / snapshots
    # ==========================================================================

    def check_invariants(self) -> bool:
        """
        Per-member bounds hold and the vault is solvent.

        Solvency is outstanding obligations (allocation minus withdrawn)
        <= holdings. The add-time pool rule in MembershipRegistry.register
        is stricter (whole allocations, withdrawn included), so every
        accepted registration keeps this bound.
        """
        if not all(r.check_invariants() for r in self.registry.iterate()):
            return False
        outstanding = self.registry.total_allocation() - self.registry.total_withdrawn()
        return outstanding <= self.get_contract_balance()

    def info(self) -> VaultInfo:
        return VaultInfo(
            address=self.address,
            owner=self.owner,
            member_count=self.registry.count(),
            admin_count=len(self.gate.admins()),
            total_allocation=self.registry.total_allocation(),
            total_unlocked=self.registry.total_unlocked(),
            total_withdrawn=self.registry.total_withdrawn(),
            contract_balance=self.get_contract_balance(),
            open_unlock=self.open_unlock,
        )

    def to_dict(self) -> dict:
        """Export vault state (not the token ledger)."""
        data = self.gate.to_dict()
        data["address"] = str(self.address)
        data["open_unlock"] = self.open_unlock
        data["members"] = self.registry.to_dict()
        return data

    @classmethod
    def from_dict(
        cls,
        data: dict,
        token: TokenService,
        clock: Optional[Clock] = None,
        schedules: Optional[Dict[Category, ScheduleDefinition]] = None
    ) -> "TokenVesting":
        """Rebuild a vault exported with to_dict() against an existing token ledger."""
        vault = cls(
            token=token,
            address=Address.from_hex(data["address"]),
            owner=Address.from_hex(data["owner"]),
            clock=clock,
            schedules=schedules,
            open_unlock=bool(data.get("open_unlock", False)),
        )
        vault.restore(data)
        return vault

    def restore(self, data: dict) -> None:
        """Reset admin set and registry to a to_dict() export of this vault."""
        self.gate = AdminGate.from_dict(data)
        self.registry = MembershipRegistry.from_dict(data.get("members", {}))
        logger.info(f"Vault {self.address} restored ({self.registry.count()} members)")
