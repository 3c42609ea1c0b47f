"""
End-to-end tests of a DAO's life: creation, staking, treasury transfers,
a presale with trading, withdrawal of the proceeds, an upgrade and an
emergency pause.
"""

import logging

import pytest

from conftest import VERSION, distribute, pass_proposal, stake
from daoforge.core import WEEK
from daoforge.crypto import NATIVE_ASSET, ether
from daoforge.errors import DAOPaused, ProposalRejected, QuorumNotReached
from daoforge.governance import Governance, ProposalState, Treasury, UpgradeableContract
from daoforge.presale import BondingCurveMarket
from daoforge.staking import VotingPowerLedger
from daoforge.token import GovernanceToken

logger = logging.getLogger(__name__)

pytestmark = pytest.mark.integration


class GovernanceV2(Governance):
    VERSION = "2.0.0"


def deadline(env):
    return env.now + 600


@pytest.fixture
def community(dao):
    """The test DAO with alice and bob holding and staking treasury tokens."""
    alice, bob = dao.accounts.alice, dao.accounts.bob
    distribute(dao, {alice: ether(10_000), bob: ether(5_000)})
    stake(dao, alice, ether(10_000))
    stake(dao, bob, ether(5_000))
    return dao


class TestDAOLifecycle:
    """Test a DAO from creation through presale, upgrade and pause."""

    def test_community_setup(self, community):
        accounts = community.accounts
        assert community.staking.total_staked() == ether(15_001)
        assert community.token.balance_of(community.treasury.address) == ether(1_000_000 - 1 - 15_000)
        assert community.dao.proposal_count() == 2
        assert community.staking.get_voting_power(accounts.alice) == ether(10_000)

    def test_contested_presale_and_trading(self, community):
        env, accounts = community.env, community.accounts

        proposal_id = community.dao.propose_presale(community.creator, ether(100_000), ether("0.001"))
        community.dao.vote(accounts.alice, proposal_id, True)
        community.dao.vote(accounts.bob, proposal_id, False)
        env.advance(community.dao.voting_period())
        community.dao.execute(accounts.carol, proposal_id)

        presale = env.contract_at(community.dao.get_presale_contract(proposal_id))
        assert community.dao.proposal_state(proposal_id) == ProposalState.EXECUTED
        assert community.dao.live_presales() == [presale.address]

        # carol fills half of tier 0, the whale the rest of it and beyond
        assert presale.buy(accounts.carol, ether(5_000), deadline(env), value=ether(5)) == ether(5_000)
        assert presale.buy(accounts.whale, 0, deadline(env), value=ether(20)) == ether(16_600)
        assert presale.get_current_tier() == 2
        assert presale.get_current_price() == ether("0.0015625")
        assert presale.total_raised() == ether(25)

        # selling refunds at the top of the curve
        community.token.approve(accounts.carol, presale.address, ether(1_000))
        refund = presale.sell(accounts.carol, ether(1_000), ether("1.5"), deadline(env))
        assert refund == ether("1.5625")
        assert env.balance_of(accounts.carol) == ether(100) - ether(5) + ether("1.5625")
        assert presale.total_raised() == ether("23.4375")
        assert env.balance_of(presale.address) == ether("23.4375")

        # proceeds go back to the treasury through governance
        result = pass_proposal(
            community, community.dao.propose_presale_withdraw(community.creator, presale.address), [accounts.alice]
        )
        assert result.execution_data["amount"] == ether("23.4375")
        assert community.treasury.balance_of_asset(NATIVE_ASSET) == ether("23.4375")
        assert env.balance_of(presale.address) == 0

        # and can be paid out like any other asset
        pass_proposal(
            community,
            community.dao.propose_transfer(community.creator, NATIVE_ASSET, accounts.carol, ether(10)),
            [accounts.alice],
        )
        assert community.treasury.balance_of_asset(NATIVE_ASSET) == ether("13.4375")
        assert env.event_log.verify_integrity()

    def test_minority_cannot_pass_proposals(self, community):
        accounts = community.accounts
        proposal_id = community.dao.propose_transfer(
            community.creator, community.token.address, accounts.bob, ether(100_000)
        )
        community.dao.vote(accounts.bob, proposal_id, True)
        community.dao.vote(accounts.alice, proposal_id, False)
        community.env.advance(community.dao.voting_period())

        with pytest.raises(ProposalRejected):
            community.dao.execute(accounts.bob, proposal_id)
        assert community.token.balance_of(accounts.bob) == 0

    def test_quorum_tracks_total_stake(self, community):
        accounts = community.accounts
        proposal_id = community.dao.propose_transfer(
            community.creator, community.token.address, accounts.carol, ether(1)
        )
        community.dao.vote(community.creator, proposal_id, True)
        community.env.advance(community.dao.voting_period())

        with pytest.raises(QuorumNotReached):
            community.dao.execute(community.creator, proposal_id)

    def test_multiplier_rewards_long_term_stakers(self, community):
        """After a week alice's 10k outweighs a fresh 12k stake."""
        env, accounts = community.env, community.accounts
        distribute(community, {accounts.carol: ether(12_000)})
        env.advance(WEEK)
        stake(community, accounts.carol, ether(12_000))

        assert community.staking.get_voting_power(accounts.alice) == ether(12_500)
        assert community.staking.get_voting_power(accounts.carol) == ether(12_000)

        proposal_id = community.dao.propose_transfer(
            community.creator, community.token.address, accounts.carol, ether(1)
        )
        community.dao.vote(accounts.alice, proposal_id, True)
        community.dao.vote(accounts.carol, proposal_id, False)
        env.advance(community.dao.voting_period())
        community.dao.execute(accounts.alice, proposal_id)
        assert community.dao.get_proposal(proposal_id).executed

    def test_upgrade_then_pause_and_resume(self, community):
        env, accounts = community.env, community.accounts
        community.registry.register_implementation(
            accounts.deployer, "2.0.0", GovernanceV2, GovernanceToken, Treasury, VotingPowerLedger, BondingCurveMarket
        )

        pass_proposal(community, community.dao.propose_upgrade(community.creator, "2.0.0"), [accounts.alice])
        assert community.dao.version() == "2.0.0"
        assert community.dao.implementation_version(UpgradeableContract.TOKEN) == VERSION
        assert community.dao.proposal_count() == 3

        pass_proposal(community, community.dao.propose_pause(community.creator), [accounts.alice])
        assert community.dao.paused()
        with pytest.raises(DAOPaused):
            community.dao.propose_presale(community.creator, ether(1_000), ether("0.001"))

        pass_proposal(community, community.dao.propose_unpause(accounts.alice), [accounts.alice])
        assert not community.dao.paused()

        proposal_id = community.dao.propose_presale(community.creator, ether(1_000), ether("0.001"))
        pass_proposal(community, proposal_id, [accounts.alice])
        presale = env.contract_at(community.dao.get_presale_contract(proposal_id))
        assert presale.total_amount() == ether(1_000)
        assert env.event_log.verify_integrity()
