"""
Token Vesting Ledger Test Fixtures
"""

import pytest

from vesting.clock import MockClock
from vesting.constants import ONE_TOKEN, UNLOCK_2022_06_30
from vesting.core.types import Address
from vesting.state.vault import TokenVesting
from vesting.token.ledger import Token


INITIAL_SUPPLY = 100_000_000 * ONE_TOKEN
LOCKED_SUPPLY = 50_000_000 * ONE_TOKEN

TREASURY_AMOUNT = 10_000_000 * ONE_TOKEN
TEAM_AMOUNT = 500_000 * ONE_TOKEN
PRESALE_AMOUNT = 250_000 * ONE_TOKEN


@pytest.fixture
def owner() -> Address:
    return Address.from_label("owner")


@pytest.fixture
def admin() -> Address:
    return Address.from_label("admin")


@pytest.fixture
def stranger() -> Address:
    return Address.from_label("stranger")


@pytest.fixture
def treasury_member() -> Address:
    return Address.from_label("treasury-member")


@pytest.fixture
def team_member() -> Address:
    return Address.from_label("team-member")


@pytest.fixture
def presale_member() -> Address:
    return Address.from_label("presale-member")


@pytest.fixture
def vault_address() -> Address:
    return Address.from_label("vault")


@pytest.fixture
def clock() -> MockClock:
    """Clock parked before the first reference tranche."""
    return MockClock(base_time=UNLOCK_2022_06_30 - 86400)


@pytest.fixture
def token(owner) -> Token:
    """Token with the full supply held by the owner."""
    return Token.deploy(owner=owner, initial_supply=INITIAL_SUPPLY)


@pytest.fixture
def vesting(token, owner, vault_address, clock) -> TokenVesting:
    """Vault funded with the locked supply, owner registered as admin."""
    vault = TokenVesting(token=token, address=vault_address, owner=owner, clock=clock)
    token.transfer(owner, vault_address, LOCKED_SUPPLY)
    vault.add_admin(owner, owner)
    return vault


@pytest.fixture
def populated_vesting(vesting, owner, treasury_member, team_member, presale_member) -> TokenVesting:
    """Vault with one member per category."""
    vesting.add_treasury_member(owner, treasury_member, TREASURY_AMOUNT)
    vesting.add_team_member(owner, team_member, TEAM_AMOUNT)
    vesting.add_presale_member(owner, presale_member, PRESALE_AMOUNT)
    return vesting
