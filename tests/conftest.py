"""
Shared fixtures for daoforge tests.

The ``dao`` fixture yields a freshly created DAO cluster whose creator has
staked their whole 1-token allocation, which is exactly the minimum stake
required to open proposals.
"""

import logging
from types import SimpleNamespace

import pytest

from daoforge.core import DAY, Environment
from daoforge.crypto import ether
from daoforge.factory import DAOFactory
from daoforge.governance import Governance, ImplementationRegistry, Treasury
from daoforge.presale import BondingCurveMarket
from daoforge.staking import VotingPowerLedger
from daoforge.token import GovernanceToken

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
VOTING_PERIOD = 3 * DAY
INITIAL_SUPPLY = ether(1_000_000)
PRESALE_AMOUNT = ether(100_000)
INITIAL_PRICE = ether("0.001")


@pytest.fixture
def env():
    return Environment()


@pytest.fixture
def accounts(env):
    return SimpleNamespace(
        deployer=env.new_account("deployer", balance=ether(1_000)),
        creator=env.new_account("creator", balance=ether(100)),
        alice=env.new_account("alice", balance=ether(100)),
        bob=env.new_account("bob", balance=ether(100)),
        carol=env.new_account("carol", balance=ether(100)),
        whale=env.new_account("whale", balance=ether(10_000)),
    )


@pytest.fixture
def registry(env, accounts):
    registry = env.deploy(accounts.deployer, ImplementationRegistry)
    registry.initialize(owner=accounts.deployer)
    registry.register_implementation(
        accounts.deployer,
        VERSION,
        dao=Governance,
        token=GovernanceToken,
        treasury=Treasury,
        staking=VotingPowerLedger,
        presale=BondingCurveMarket,
    )
    return registry


@pytest.fixture
def factory(env, accounts, registry):
    factory = env.deploy(accounts.deployer, DAOFactory)
    factory.initialize(owner=accounts.deployer, registry=registry.address)
    return factory


def stake(ctx, account, amount):
    """Approve and stake ``amount`` tokens for ``account``."""
    ctx.token.approve(account, ctx.staking.address, amount)
    ctx.staking.stake(account, amount)


def pass_proposal(ctx, proposal_id, voters=None):
    """Vote ``proposal_id`` through, close the window and execute it."""
    for voter in voters or [ctx.creator]:
        ctx.dao.vote(voter, proposal_id, True)
    ctx.env.advance(VOTING_PERIOD)
    return ctx.dao.execute(ctx.creator, proposal_id)


def distribute(ctx, allocations):
    """Release treasury tokens to several accounts through transfer proposals."""
    proposal_ids = [
        ctx.dao.propose_transfer(ctx.creator, ctx.token.address, recipient, amount)
        for recipient, amount in allocations.items()
    ]
    for proposal_id in proposal_ids:
        ctx.dao.vote(ctx.creator, proposal_id, True)
    ctx.env.advance(VOTING_PERIOD)
    for proposal_id in proposal_ids:
        ctx.dao.execute(ctx.creator, proposal_id)


def create_presale(ctx, amount=PRESALE_AMOUNT, initial_price=INITIAL_PRICE):
    proposal_id = ctx.dao.propose_presale(ctx.creator, amount, initial_price)
    pass_proposal(ctx, proposal_id)
    return ctx.env.contract_at(ctx.dao.get_presale_contract(proposal_id))


@pytest.fixture
def dao(env, accounts, registry, factory):
    cluster = factory.create_dao(accounts.creator, VERSION, "Test DAO", "Test Token", "TEST", INITIAL_SUPPLY)
    ctx = SimpleNamespace(
        env=env,
        accounts=accounts,
        registry=registry,
        factory=factory,
        cluster=cluster,
        creator=accounts.creator,
        dao=env.contract_at(cluster.dao),
        token=env.contract_at(cluster.token),
        treasury=env.contract_at(cluster.treasury),
        staking=env.contract_at(cluster.staking),
    )
    stake(ctx, ctx.creator, ether(1))
    return ctx


@pytest.fixture
def presale(dao):
    """A 100k-token presale starting at 0.001 ETH, 10 tiers, x1.25 per tier."""
    return create_presale(dao)
