"""
Token Vesting Ledger Token Service

The fungible-token interface consumed by the vesting core, and an
in-memory reference token implementing it. The token is Ownable: mint,
burn and ownership transfer are restricted to the owner.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Protocol, Tuple, runtime_checkable

from vesting.constants import DECIMALS, TOKEN_NAME, TOKEN_SYMBOL
from vesting.core.types import Address
from vesting.errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenService(Protocol):
    """Operations the vesting core needs from a token ledger."""

    name: str
    symbol: str
    decimals: int

    @property
    def owner(self) -> Address: ...

    @property
    def total_supply(self) -> int: ...

    def balance_of(self, address: Address) -> int: ...

    def transfer(self, sender: Address, to: Address, amount: int) -> bool: ...

    def mint(self, caller: Address, to: Address, amount: int) -> None: ...

    def burn(self, caller: Address, from_: Address, amount: int) -> None: ...


@dataclass
class Token:
    """
    In-memory fungible token.

    Balances are atomic units (10**decimals per whole token). Every
    operation validates before mutating, so a failed call leaves the
    ledger untouched.
    """
    _owner: Address
    name: str = TOKEN_NAME
    symbol: str = TOKEN_SYMBOL
    decimals: int = DECIMALS
    _balances: Dict[Address, int] = field(default_factory=dict)
    _total_supply: int = 0

    @classmethod
    def deploy(
        cls,
        owner: Address,
        initial_supply: int,
        name: str = TOKEN_NAME,
        symbol: str = TOKEN_SYMBOL,
        decimals: int = DECIMALS
    ) -> "Token":
        """Create a token with the initial supply credited to the owner."""
        if initial_supply < 0:
            raise InvalidAmountError(initial_supply)
        token = cls(_owner=owner, name=name, symbol=symbol, decimals=decimals)
        if initial_supply:
            token._credit(owner, initial_supply)
            token._total_supply = initial_supply
        logger.info(f"Token {symbol} deployed, supply={initial_supply}, owner={owner}")
        return token

    @property
    def owner(self) -> Address:
        return self._owner

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def unit(self) -> int:
        """Atomic units per whole token."""
        return 10 ** self.decimals

    def balance_of(self, address: Address) -> int:
        return self._balances.get(address, 0)

    def _require_owner(self, caller: Address, operation: str) -> None:
        if caller != self._owner:
            raise UnauthorizedError(caller, "owner", operation)

    def _credit(self, address: Address, amount: int) -> None:
        self._balances[address] = self._balances.get(address, 0) + amount

    def _debit(self, address: Address, amount: int) -> None:
        balance = self._balances.get(address, 0)
        if balance < amount:
            raise InsufficientBalanceError(address, balance, amount)
        remaining = balance - amount
        if remaining:
            self._balances[address] = remaining
        else:
            self._balances.pop(address, None)

    def transfer(self, sender: Address, to: Address, amount: int) -> bool:
        """
        Move `amount` from sender to `to`.

        Raises:
            InvalidAmountError: negative amount
            InsufficientBalanceError: sender balance < amount
        """
        if amount < 0:
            raise InvalidAmountError(amount)
        self._debit(sender, amount)
        self._credit(to, amount)
        logger.debug(f"Transfer {sender} -> {to}, amount={amount}")
        return True

    def mint(self, caller: Address, to: Address, amount: int) -> None:
        """Create tokens. Owner only."""
        self._require_owner(caller, "mint")
        if amount < 0:
            raise InvalidAmountError(amount)
        self._credit(to, amount)
        self._total_supply += amount
        logger.info(f"Minted {amount} to {to}, supply={self._total_supply}")

    def burn(self, caller: Address, from_: Address, amount: int) -> None:
        """Destroy tokens held by `from_`. Owner only."""
        self._require_owner(caller, "burn")
        if amount < 0:
            raise InvalidAmountError(amount)
        self._debit(from_, amount)
        self._total_supply -= amount
        logger.info(f"Burned {amount} from {from_}, supply={self._total_supply}")

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        """Hand mint/burn rights to another identity. Owner only."""
        self._require_owner(caller, "transfer_ownership")
        if new_owner.is_zero():
            raise ValueError("New owner is the zero address")
        logger.info(f"Token ownership {self._owner} -> {new_owner}")
        self._owner = new_owner

    def holders(self) -> Iterator[Tuple[Address, int]]:
        """Iterate (address, balance) for every non-zero balance."""
        return iter(self._balances.items())

    def info(self) -> dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self._total_supply,
            "owner": str(self._owner),
        }

    def to_dict(self) -> dict:
        """Export token metadata and balances."""
        data = self.info()
        data["balances"] = {str(addr): bal for addr, bal in self._balances.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        """Import a token exported with to_dict()."""
        token = cls(
            _owner=Address.from_hex(data["owner"]),
            name=data.get("name", TOKEN_NAME),
            symbol=data.get("symbol", TOKEN_SYMBOL),
            decimals=int(data.get("decimals", DECIMALS)),
        )
        token.restore(data)
        return token

    def restore(self, data: dict) -> None:
        """Reset owner, balances and supply to a to_dict() export."""
        self._owner = Address.from_hex(data["owner"])
        self._balances = {
            Address.from_hex(addr_hex): int(balance)
            for addr_hex, balance in data.get("balances", {}).items()
            if int(balance)
        }
        self._total_supply = int(data.get("total_supply", sum(self._balances.values())))
