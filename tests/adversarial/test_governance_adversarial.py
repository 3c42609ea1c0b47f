"""
Adversarial tests for governance, treasury and presale.

Attackers try to bypass the DAO's admin gates, replay or stretch the
voting process, inflate their voting power and sandwich presale buyers.
Every attempt must fail without leaving state behind.
"""

import logging
from typing import Any, Callable, Dict, List

import pytest

from conftest import pass_proposal, stake
from daoforge.core import THREE_MONTHS
from daoforge.crypto import NATIVE_ASSET, ether
from daoforge.errors import (
    AlreadyExecuted,
    AlreadyVoted,
    DAOForgeError,
    InsufficientVotingPower,
    NotEnoughTokens,
    OnlyDAO,
    SlippageTooHigh,
    Unauthorized,
    UnknownModule,
    VotingClosed,
)
from daoforge.governance import Governance
from daoforge.presale import BondingCurveMarket

logger = logging.getLogger(__name__)


def deadline(env):
    return env.now + 600


class AdversarialAttacker:
    """Runs attack attempts and keeps statistics on how they ended."""

    def __init__(self, address: str, goal: str):
        self.address = address
        self.goal = goal
        self.attacks_attempted = 0
        self.successful_attacks = 0
        self.failures: List[str] = []

    def attempt(self, attack: Callable[[], Any]) -> bool:
        """Run ``attack``; a raised daoforge error counts as a repelled attack."""
        self.attacks_attempted += 1
        try:
            attack()
        except DAOForgeError as e:
            self.failures.append(e.error_code)
            return False
        self.successful_attacks += 1
        return True

    def get_attack_statistics(self) -> Dict[str, Any]:
        return {
            "goal": self.goal,
            "attacks_attempted": self.attacks_attempted,
            "successful_attacks": self.successful_attacks,
            "success_rate": self.successful_attacks / max(self.attacks_attempted, 1),
        }


class TestAdminBypass:
    """Test direct calls to entry points reserved for the DAO."""

    def test_treasury_drain(self, dao):
        attacker = AdversarialAttacker(dao.accounts.carol, "Drain the treasury")
        dao.env.send_value(dao.accounts.whale, dao.treasury.address, ether(50))

        attacks = [
            lambda: dao.treasury.release_asset(attacker.address, NATIVE_ASSET, attacker.address, ether(50)),
            lambda: dao.treasury.release_asset(
                attacker.address, dao.token.address, attacker.address, ether(1_000)
            ),
            lambda: dao.treasury.release_asset(dao.creator, NATIVE_ASSET, attacker.address, ether(1)),
        ]
        for attack in attacks:
            assert not attacker.attempt(attack)

        assert attacker.failures == ["OnlyDAO"] * 3
        assert attacker.get_attack_statistics()["success_rate"] == 0
        assert dao.treasury.balance_of_asset(NATIVE_ASSET) == ether(50)

    def test_presale_admin(self, dao, presale):
        carol = dao.accounts.carol
        presale.buy(carol, 0, deadline(dao.env), value=ether(3))

        with pytest.raises(OnlyDAO):
            presale.withdraw_to_treasury(carol)
        with pytest.raises(OnlyDAO):
            presale.set_paused(carol, True)
        assert dao.env.balance_of(presale.address) == ether(3)
        assert not presale.paused()

    def test_hijack_upgrade(self, dao, presale):
        class Backdoor(Governance):
            def drain(self, sender):
                return None

        for target in (dao.dao, dao.token, dao.treasury, dao.staking, presale):
            with pytest.raises(Unauthorized):
                target.upgrade_to(dao.accounts.carol, Backdoor)
            with pytest.raises(Unauthorized):
                target.change_admin(dao.accounts.carol, dao.accounts.carol)
        assert presale.implementation is BondingCurveMarket

    def test_forged_presale_address(self, dao, presale):
        """Pause and withdraw proposals only accept presales the DAO created."""
        forged = dao.env.deploy(dao.accounts.carol, BondingCurveMarket)
        forged.initialize(
            token=dao.token.address,
            treasury=dao.accounts.carol,
            dao=dao.dao.address,
            total_amount=ether(1_000),
            initial_price=1,
        )
        with pytest.raises(UnknownModule):
            dao.dao.propose_presale_withdraw(dao.creator, forged.address)
        with pytest.raises(UnknownModule):
            dao.dao.propose_presale_pause(dao.creator, dao.token.address, True)


class TestVotingManipulation:
    """Test attempts to bend the voting process."""

    def test_double_vote(self, dao):
        proposal_id = dao.dao.propose_pause(dao.creator)
        dao.dao.vote(dao.creator, proposal_id, True)
        with pytest.raises(AlreadyVoted):
            dao.dao.vote(dao.creator, proposal_id, True)
        assert dao.dao.get_proposal(proposal_id).for_votes == ether(1)

    def test_late_vote_and_replay(self, dao):
        proposal_id = dao.dao.propose_transfer(dao.creator, dao.token.address, dao.accounts.carol, ether(1))
        pass_proposal(dao, proposal_id)

        with pytest.raises(VotingClosed):
            dao.dao.vote(dao.accounts.carol, proposal_id, False)
        with pytest.raises(AlreadyExecuted):
            dao.dao.execute(dao.accounts.carol, proposal_id)
        assert dao.token.balance_of(dao.accounts.carol) == ether(1)

    def test_unstaked_holders_have_no_voice(self, dao):
        proposal_id = dao.dao.propose_pause(dao.creator)
        with pytest.raises(InsufficientVotingPower):
            dao.dao.vote(dao.accounts.carol, proposal_id, False)
        with pytest.raises(InsufficientVotingPower):
            dao.dao.propose_pause(dao.accounts.carol)

    def test_fresh_stake_gets_no_bonus(self, dao):
        """A last-minute stake votes at 1x while a long-held stake is boosted."""
        carol = dao.accounts.carol
        pass_proposal(dao, dao.dao.propose_transfer(dao.creator, dao.token.address, carol, ether(1)))
        dao.env.advance(THREE_MONTHS)
        stake(dao, carol, ether(1))

        assert dao.staking.get_voting_power(carol) == ether(1)
        assert dao.staking.get_voting_power(dao.creator) == ether(2)


class TestPresaleManipulation:
    """Test front-running and free-token attacks on the bonding curve."""

    def test_sandwich_is_stopped_by_slippage_bound(self, dao, presale):
        accounts, env = dao.accounts, dao.env
        expected = presale.calculate_purchase(ether(5))

        # the whale buys ahead of carol's pending order
        presale.buy(accounts.whale, 0, deadline(env), value=ether(10))

        with pytest.raises(SlippageTooHigh):
            presale.buy(accounts.carol, expected, deadline(env), value=ether(5))
        assert env.balance_of(accounts.carol) == ether(100)

    def test_single_wei_buy_pays_its_way(self, dao, presale):
        tokens = presale.buy(dao.accounts.carol, 0, deadline(dao.env), value=1)
        assert tokens * presale.get_current_price() // 10**18 == 1

    def test_cannot_sell_tokens_the_curve_never_sold(self, dao, presale):
        """Tokens obtained outside the presale cannot be dumped on it."""
        accounts, env = dao.accounts, dao.env
        pass_proposal(dao, dao.dao.propose_transfer(dao.creator, dao.token.address, accounts.carol, ether(2_000)))
        presale.buy(accounts.bob, 0, deadline(env), value=ether(1))
        env.send_value(accounts.whale, presale.address, ether(5))

        dao.token.approve(accounts.carol, presale.address, ether(2_000))
        with pytest.raises(NotEnoughTokens):
            presale.sell(accounts.carol, ether(1_001), 0, deadline(env))

        assert presale.get_tokens_sold() == ether(1_000)
        assert dao.token.balance_of(accounts.carol) == ether(2_000)
        assert env.balance_of(presale.address) == ether(6)
