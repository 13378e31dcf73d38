"""
Token Vesting Ledger Deployment

Stands up a token and a funded vesting vault from a VestingConfig:

1. Deploy the token, minting the initial supply to the owner
2. Deploy the vault at an address derived from (owner, nonce)
3. Move the locked supply from the owner into the vault
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from vesting.clock import Clock
from vesting.config import VestingConfig
from vesting.constants import ADDRESS_SIZE
from vesting.core.types import Address
from vesting.crypto.hash import KeccakBuilder
from vesting.state.vault import TokenVesting
from vesting.token.ledger import Token

logger = logging.getLogger(__name__)


VAULT_NONCE = 1


def contract_address(deployer: Address, nonce: int) -> Address:
    """Address of the contract `deployer` creates with `nonce`."""
    digest = KeccakBuilder().update(deployer.data).update_u64(nonce).finalize()
    return Address(digest[-ADDRESS_SIZE:])


@dataclass
class Deployment:
    """A deployed token and the vault it funds."""
    token: Token
    vesting: TokenVesting
    owner: Address

    def info(self) -> dict:
        return {
            "owner": str(self.owner),
            "token": self.token.info(),
            "vesting": self.vesting.info().to_dict(),
        }


def deploy(
    config: Optional[VestingConfig] = None,
    owner: Optional[Address] = None,
    clock: Optional[Clock] = None
) -> Deployment:
    """
    Deploy token and vault.

    Args:
        config: Deployment configuration (defaults if omitted)
        owner: Deployer identity; owns both token and vault
        clock: Time source for the vault (built from config if omitted)

    Returns:
        Deployment holding the token and the funded vault

    Raises:
        ValueError: configuration is invalid
    """
    config = config or VestingConfig()
    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    owner = owner or Address.from_label(config.name)
    unit = config.token.unit

    token = Token.deploy(
        owner=owner,
        initial_supply=config.token.initial_supply * unit,
        name=config.token.name,
        symbol=config.token.symbol,
        decimals=config.token.decimals,
    )

    vesting = TokenVesting(
        token=token,
        address=contract_address(owner, VAULT_NONCE),
        owner=owner,
        clock=clock or config.create_clock(),
        schedules=config.schedules(),
        open_unlock=config.open_unlock,
    )

    locked = config.token.locked_supply * unit
    if locked:
        token.transfer(owner, vesting.address, locked)

    logger.info(
        f"Deployed {token.symbol} and vault {vesting.address}, "
        f"locked={locked}, owner={owner}"
    )
    return Deployment(token=token, vesting=vesting, owner=owner)
