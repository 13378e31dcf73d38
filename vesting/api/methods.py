"""
Token Vesting Ledger JSON-RPC Methods

All RPC methods for the API server. Each method receives the vault first,
then the request params. Caller identity travels as the `sender` param.
"""

from __future__ import annotations
import logging
from typing import Any, List, TYPE_CHECKING

from vesting.clock import read_clock
from vesting.constants import PROTOCOL_VERSION
from vesting.core.state import Category
from vesting.core.types import Address, parse_address

if TYPE_CHECKING:
    from vesting.state.vault import TokenVesting

logger = logging.getLogger(__name__)


class RPCError(Exception):
    """RPC error with code and message."""
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


# Error codes
ERROR_PARSE = -32700
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602
ERROR_INTERNAL = -32603
ERROR_REJECTED = -32010         # VestingError raised by the vault or token


def _address(value: Any, name: str = "address") -> Address:
    try:
        return parse_address(value)
    except ValueError as e:
        raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name}: {e}")


def _amount(value: Any) -> int:
    """Amounts arrive as JSON integers or decimal strings (atomic units)."""
    if isinstance(value, bool):
        raise RPCError(ERROR_INVALID_PARAMS, f"Invalid amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError:
            pass
    raise RPCError(ERROR_INVALID_PARAMS, f"Invalid amount: {value!r}")


# ==============================================================================
# Admin Methods
# ==============================================================================

async def add_admin(vesting: "TokenVesting", sender: str, admin: str) -> bool:
    """
    Grant the admin role.

    Args:
        sender: Caller identity (must be the owner)
        admin: Identity to promote

    Returns:
        True
    """
    vesting.add_admin(_address(sender, "sender"), _address(admin, "admin"))
    return True


async def is_admin(vesting: "TokenVesting", address: str) -> bool:
    return vesting.is_admin(_address(address))


# ==============================================================================
# Membership Methods
# ==============================================================================

async def _add_member(
    vesting: "TokenVesting",
    category: Category,
    sender: str,
    member: str,
    amount: Any
) -> dict:
    record = vesting.add_member(
        _address(sender, "sender"),
        _address(member, "member"),
        category,
        _amount(amount),
    )
    return record.to_dict()


async def add_treasury_member(vesting: "TokenVesting", sender: str, member: str, amount: Any) -> dict:
    """Register a treasury member. Returns the new record."""
    return await _add_member(vesting, Category.TREASURY, sender, member, amount)


async def add_team_member(vesting: "TokenVesting", sender: str, member: str, amount: Any) -> dict:
    """Register a team member. Returns the new record."""
    return await _add_member(vesting, Category.TEAM, sender, member, amount)


async def add_presale_member(vesting: "TokenVesting", sender: str, member: str, amount: Any) -> dict:
    """Register a presale member. Returns the new record."""
    return await _add_member(vesting, Category.PRESALE, sender, member, amount)


async def get_member_data(vesting: "TokenVesting", address: str) -> dict:
    """
    Get a member record.

    Args:
        address: Member identity (hex)

    Returns:
        Record with derived withdrawable amount and statuses
    """
    return vesting.get_member(_address(address)).to_dict()


# ==============================================================================
# Unlock / Withdrawal Methods
# ==============================================================================

async def unlock_token(vesting: "TokenVesting", sender: str) -> dict:
    """
    Run an unlock pass at the vault clock's current time.

    The clock is read without blocking the event loop, after the caller
    has been checked.

    Returns:
        Unlock report
    """
    caller = _address(sender, "sender")
    vesting.require_unlock_permission(caller)
    now = await read_clock(vesting.clock)
    return vesting.unlock_token(caller, now=now).to_dict()


async def withdraw_by_member(vesting: "TokenVesting", sender: str) -> int:
    """
    Withdraw the sender's unlocked tokens.

    Returns:
        Amount transferred in atomic units
    """
    return vesting.withdraw_by_member(_address(sender, "sender"))


async def get_contract_balance(vesting: "TokenVesting") -> int:
    return vesting.get_contract_balance()


async def get_vault_info(vesting: "TokenVesting") -> dict:
    """
    Get vault summary.

    Returns:
        Addresses, counts, totals, and per-category schedules
    """
    info = vesting.info().to_dict()
    info["protocol_version"] = PROTOCOL_VERSION
    info["admins"] = [str(a) for a in vesting.admins()]
    info["schedules"] = {
        category.value: vesting.schedule_for(category).to_list()
        for category in Category
    }
    return info


# ==============================================================================
# Token Methods
# ==============================================================================

async def get_token_info(vesting: "TokenVesting") -> dict:
    token = vesting.token
    return {
        "name": token.name,
        "symbol": token.symbol,
        "decimals": token.decimals,
        "total_supply": token.total_supply,
        "owner": str(token.owner),
    }


async def get_balance(vesting: "TokenVesting", address: str) -> int:
    """
    Get token balance.

    Args:
        address: Holder identity (hex)

    Returns:
        Balance in atomic units
    """
    return vesting.token.balance_of(_address(address))


# ==============================================================================
# Method Registry
# ==============================================================================

METHOD_REGISTRY = {
    # Admin
    "vest_addAdmin": add_admin,
    "vest_isAdmin": is_admin,

    # Membership
    "vest_addTreasuryMember": add_treasury_member,
    "vest_addTeamMember": add_team_member,
    "vest_addPreSaleMember": add_presale_member,
    "vest_getMemberData": get_member_data,

    # Unlock / withdrawal
    "vest_unlockToken": unlock_token,
    "vest_withdrawByMember": withdraw_by_member,
    "vest_getContractBalance": get_contract_balance,
    "vest_info": get_vault_info,

    # Token
    "token_info": get_token_info,
    "token_balanceOf": get_balance,
}


def get_method(name: str):
    """Get method by name."""
    return METHOD_REGISTRY.get(name)


def list_methods() -> List[str]:
    """List all available methods."""
    return list(METHOD_REGISTRY.keys())
