"""
Token Vesting Ledger Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Ledger error codes."""

    # 2xxx - Access control errors
    UNAUTHORIZED = 2001
    ALREADY_ADMIN = 2002

    # 3xxx - Registry errors
    INVALID_AMOUNT = 3001
    DUPLICATE_MEMBER = 3002
    MEMBER_NOT_FOUND = 3003
    ALLOCATION_EXCEEDS_POOL = 3004

    # 4xxx - Unlock errors
    NO_MEMBERS = 4001
    INVALID_SCHEDULE = 4002
    CLOCK_UNAVAILABLE = 4003

    # 5xxx - Withdrawal / token errors
    NOTHING_TO_WITHDRAW = 5001
    TRANSFER_FAILED = 5002
    INSUFFICIENT_BALANCE = 5003


class VestingError(Exception):
    """Base exception for all vesting ledger errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# Access Control Errors (2xxx)
# ==============================================================================

class UnauthorizedError(VestingError):
    def __init__(self, caller: Any, role: str, operation: str):
        super().__init__(
            ErrorCode.UNAUTHORIZED,
            f"Caller {caller} lacks role '{role}' required for {operation}",
            {"caller": str(caller), "role": role, "operation": operation}
        )


class AlreadyAdminError(VestingError):
    def __init__(self, identity: Any):
        super().__init__(
            ErrorCode.ALREADY_ADMIN,
            f"Already an admin: {identity}",
            {"identity": str(identity)}
        )


# ==============================================================================
# Registry Errors (3xxx)
# ==============================================================================

class InvalidAmountError(VestingError):
    def __init__(self, amount: int):
        super().__init__(
            ErrorCode.INVALID_AMOUNT,
            f"Amount must be positive, got {amount}",
            {"amount": amount}
        )


class DuplicateMemberError(VestingError):
    def __init__(self, address: Any, category: str):
        super().__init__(
            ErrorCode.DUPLICATE_MEMBER,
            f"Member already registered: {address} ({category})",
            {"address": str(address), "category": category}
        )


class MemberNotFoundError(VestingError):
    def __init__(self, address: Any):
        super().__init__(
            ErrorCode.MEMBER_NOT_FOUND,
            f"Member not found: {address}",
            {"address": str(address)}
        )


class AllocationExceedsPoolError(VestingError):
    def __init__(self, allocated: int, amount: int, pool: int):
        super().__init__(
            ErrorCode.ALLOCATION_EXCEEDS_POOL,
            f"Allocation exceeds pool: {allocated} + {amount} > {pool}",
            {"allocated": allocated, "amount": amount, "pool": pool}
        )


# ==============================================================================
# Unlock Errors (4xxx)
# ==============================================================================

class NoMembersError(VestingError):
    def __init__(self):
        super().__init__(ErrorCode.NO_MEMBERS, "Please add members")


class InvalidScheduleError(VestingError):
    def __init__(self, category: str, reason: str):
        super().__init__(
            ErrorCode.INVALID_SCHEDULE,
            f"Invalid schedule for {category}: {reason}",
            {"category": category, "reason": reason}
        )


class ClockUnavailableError(VestingError):
    def __init__(self, source: str, error: str):
        super().__init__(
            ErrorCode.CLOCK_UNAVAILABLE,
            f"Time source unavailable: {source}: {error}",
            {"source": source, "error": error}
        )


# ==============================================================================
# Withdrawal / Token Errors (5xxx)
# ==============================================================================

class NothingToWithdrawError(VestingError):
    def __init__(self, address: Any, unlocked: int, withdrawn: int):
        super().__init__(
            ErrorCode.NOTHING_TO_WITHDRAW,
            f"Nothing to withdraw for {address}: unlocked={unlocked}, withdrawn={withdrawn}",
            {"address": str(address), "unlocked": unlocked, "withdrawn": withdrawn}
        )


class TransferFailedError(VestingError):
    def __init__(self, recipient: Any, amount: int, reason: str):
        super().__init__(
            ErrorCode.TRANSFER_FAILED,
            f"Transfer of {amount} to {recipient} failed: {reason}",
            {"recipient": str(recipient), "amount": amount, "reason": reason}
        )


class InsufficientBalanceError(VestingError):
    def __init__(self, address: Any, balance: int, amount: int):
        super().__init__(
            ErrorCode.INSUFFICIENT_BALANCE,
            f"Insufficient balance for {address}: {balance} < {amount}",
            {"address": str(address), "balance": balance, "amount": amount}
        )

