"""
Token Vesting Ledger Withdrawal Processor

Turns a member's unlocked-but-unwithdrawn balance into a token transfer
out of the vault. The record is only updated after the transfer succeeds.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from vesting.core.types import Address
from vesting.errors import NothingToWithdrawError, TransferFailedError, VestingError
from vesting.state.registry import MembershipRegistry
from vesting.token.ledger import TokenService

logger = logging.getLogger(__name__)


@dataclass
class WithdrawalProcessor:
    """Pays out vested tokens from the vault's token holdings."""
    token: TokenService
    vault_address: Address

    def contract_balance(self) -> int:
        """Tokens currently held by the vault."""
        return self.token.balance_of(self.vault_address)

    def withdraw(self, registry: MembershipRegistry, caller: Address) -> int:
        """
        Transfer everything the caller may withdraw.

        Returns:
            Amount transferred

        Raises:
            MemberNotFoundError: caller is not registered
            NothingToWithdrawError: unlocked == withdrawn
            TransferFailedError: the token refused the transfer
        """
        record = registry.require(caller)
        deliverable = record.withdrawable
        if deliverable == 0:
            raise NothingToWithdrawError(caller, record.unlocked_amount, record.withdrawn_amount)

        try:
            ok = self.token.transfer(self.vault_address, caller, deliverable)
        except VestingError as e:
            logger.warning(f"Withdrawal of {deliverable} to {caller} failed: {e}")
            raise TransferFailedError(caller, deliverable, e.message) from e

        if not ok:
            raise TransferFailedError(caller, deliverable, "token returned failure")

        record.withdrawn_amount += deliverable
        logger.info(
            f"Withdrawn {deliverable} by {caller} "
            f"({record.withdrawn_amount}/{record.unlocked_amount} unlocked)"
        )
        return deliverable
