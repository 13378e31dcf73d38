"""
Token Vesting Ledger Admin Gate Tests
"""

import pytest

from vesting.errors import AlreadyAdminError, ErrorCode, UnauthorizedError
from vesting.state.admin import AdminGate, ROLE_ADMIN, ROLE_OWNER


class TestAdminGate:
    """Tests for AdminGate."""

    def test_owner_not_implicit_admin(self, owner):
        gate = AdminGate(owner=owner)
        assert gate.is_owner(owner)
        assert not gate.is_admin(owner)

    def test_add_admin(self, owner, admin):
        gate = AdminGate(owner=owner)
        gate.add_admin(owner, admin)
        assert gate.is_admin(admin)
        assert gate.admins() == [admin]

    def test_add_admin_requires_owner(self, owner, admin, stranger):
        gate = AdminGate(owner=owner)
        gate.add_admin(owner, admin)

        with pytest.raises(UnauthorizedError) as exc_info:
            gate.add_admin(admin, stranger)

        assert exc_info.value.details["role"] == ROLE_OWNER
        assert not gate.is_admin(stranger)

    def test_add_admin_twice(self, owner, admin):
        gate = AdminGate(owner=owner)
        gate.add_admin(owner, admin)

        with pytest.raises(AlreadyAdminError) as exc_info:
            gate.add_admin(owner, admin)

        assert exc_info.value.code == ErrorCode.ALREADY_ADMIN
        assert gate.admins() == [admin]

    def test_require_admin(self, owner, admin, stranger):
        gate = AdminGate(owner=owner)
        gate.add_admin(owner, admin)
        gate.require_admin(admin, "test")

        with pytest.raises(UnauthorizedError) as exc_info:
            gate.require_admin(stranger, "test")
        assert exc_info.value.details["role"] == ROLE_ADMIN

    def test_copy_is_independent(self, owner, admin):
        gate = AdminGate(owner=owner)
        copy = gate.copy()
        copy.add_admin(owner, admin)
        assert not gate.is_admin(admin)

    def test_serialization(self, owner, admin):
        gate = AdminGate(owner=owner)
        gate.add_admin(owner, admin)
        gate.add_admin(owner, owner)

        restored = AdminGate.from_dict(gate.to_dict())
        assert restored.owner == owner
        assert restored.admins() == gate.admins()
