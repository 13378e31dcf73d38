"""
Token Vesting Ledger Admin Gate

Owner and admin-set permission checks consulted at the top of every
mutating operation.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Set

from vesting.core.types import Address
from vesting.errors import AlreadyAdminError, UnauthorizedError

logger = logging.getLogger(__name__)

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"


@dataclass
class AdminGate:
    """
    Access control for the vault.

    The owner manages the admin set; admins mutate the registry and
    trigger unlocks. The owner is not an admin unless added.
    """
    owner: Address
    _admins: Set[Address] = field(default_factory=set)

    def is_owner(self, identity: Address) -> bool:
        return identity == self.owner

    def is_admin(self, identity: Address) -> bool:
        return identity in self._admins

    def require_owner(self, caller: Address, operation: str) -> None:
        if not self.is_owner(caller):
            logger.warning(f"Rejected {operation}: {caller} is not the owner")
            raise UnauthorizedError(caller, ROLE_OWNER, operation)

    def require_admin(self, caller: Address, operation: str) -> None:
        if not self.is_admin(caller):
            logger.warning(f"Rejected {operation}: {caller} is not an admin")
            raise UnauthorizedError(caller, ROLE_ADMIN, operation)

    def add_admin(self, caller: Address, identity: Address) -> None:
        """
        Grant the admin role. Owner only.

        Raises:
            UnauthorizedError: caller is not the owner
            AlreadyAdminError: identity already holds the role
        """
        self.require_owner(caller, "add_admin")
        if identity in self._admins:
            raise AlreadyAdminError(identity)
        self._admins.add(identity)
        logger.info(f"Admin added: {identity}")

    def admins(self) -> List[Address]:
        """Admins sorted by address bytes."""
        return sorted(self._admins, key=lambda a: a.data)

    def copy(self) -> "AdminGate":
        return AdminGate(owner=self.owner, _admins=set(self._admins))

    def to_dict(self) -> dict:
        return {
            "owner": str(self.owner),
            "admins": [str(a) for a in self.admins()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AdminGate":
        return cls(
            owner=Address.from_hex(data["owner"]),
            _admins={Address.from_hex(a) for a in data.get("admins", [])},
        )
