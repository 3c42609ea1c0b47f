"""
Unit tests for the staking ledger and voting-power multipliers.
"""

import logging

import pytest
from types import SimpleNamespace

from daoforge.core import DAY, MONTH, THREE_MONTHS, WEEK
from daoforge.crypto import ether
from daoforge.errors import ConfigurationError, InsufficientAllowance, InsufficientStake, ZeroAmount
from daoforge.staking import BPS_DENOMINATOR, StakingConfig, VotingPowerLedger, multiplier_for
from daoforge.token import GovernanceToken

logger = logging.getLogger(__name__)


@pytest.fixture
def ledger(env, accounts):
    token = env.deploy(accounts.deployer, GovernanceToken)
    staking = env.deploy(accounts.deployer, VotingPowerLedger)
    token.initialize(
        "Stake Token",
        "STK",
        ether(1_000_000),
        creator=accounts.alice,
        treasury=accounts.deployer,
        owner=accounts.deployer,
        staking_contract=staking.address,
    )
    staking.initialize(token=token.address, owner=accounts.deployer)
    token.transfer(accounts.deployer, accounts.alice, ether(999))
    token.transfer(accounts.deployer, accounts.bob, ether(1_000))
    for account in (accounts.alice, accounts.bob):
        token.approve(account, staking.address, ether(1_000))
    return SimpleNamespace(env=env, token=token, staking=staking, alice=accounts.alice, bob=accounts.bob)


class TestMultiplierSchedule:
    """Test the time-held multiplier schedule."""

    def test_default_schedule(self):
        """Test multiplier at and around each boundary."""
        tiers = StakingConfig().multiplier_tiers
        assert multiplier_for(0, tiers) == 10_000
        assert multiplier_for(WEEK - 1, tiers) == 10_000
        assert multiplier_for(WEEK, tiers) == 12_500
        assert multiplier_for(MONTH - 1, tiers) == 12_500
        assert multiplier_for(MONTH, tiers) == 15_000
        assert multiplier_for(THREE_MONTHS - 1, tiers) == 15_000
        assert multiplier_for(THREE_MONTHS, tiers) == 20_000
        assert multiplier_for(10 * THREE_MONTHS, tiers) == 20_000

    def test_config_rejects_unordered_tiers(self):
        with pytest.raises(ConfigurationError):
            StakingConfig(multiplier_tiers=((0, 10_000), (MONTH, 15_000), (WEEK, 12_500)))

    def test_config_rejects_missing_base_tier(self):
        with pytest.raises(ConfigurationError):
            StakingConfig(multiplier_tiers=((WEEK, 12_500),))

    def test_config_from_dict(self):
        config = StakingConfig.from_dict({"multiplier_tiers": [[0, 10_000], [DAY, 11_000]]})
        assert config.multiplier_tiers == ((0, 10_000), (DAY, 11_000))


class TestStaking:
    """Test stake and unstake accounting."""

    def test_scenario_voting_power_grows_with_time(self, ledger):
        """Stake 1 token and watch its voting power follow the schedule."""
        ledger.staking.stake(ledger.alice, ether(1))
        assert ledger.staking.get_voting_power(ledger.alice) == ether(1)

        ledger.env.advance(WEEK)
        assert ledger.staking.get_voting_power(ledger.alice) == ether("1.25")

        ledger.env.advance(MONTH - WEEK)
        assert ledger.staking.get_voting_power(ledger.alice) == ether("1.5")

        ledger.env.advance(THREE_MONTHS - MONTH)
        assert ledger.staking.get_voting_power(ledger.alice) == ether(2)

    def test_stake_moves_tokens_into_custody(self, ledger):
        ledger.staking.stake(ledger.alice, ether(10))

        assert ledger.token.balance_of(ledger.staking.address) == ether(10)
        assert ledger.token.balance_of(ledger.alice) == ether(990)
        assert ledger.staking.staked_amount(ledger.alice) == ether(10)
        assert ledger.staking.total_staked() == ether(10)
        assert ledger.env.events("Staked")[-1]["amount"] == ether(10)

    def test_stake_zero_fails(self, ledger):
        with pytest.raises(ZeroAmount, match="Zero amount"):
            ledger.staking.stake(ledger.alice, 0)

    def test_stake_requires_approval(self, ledger, accounts):
        ledger.token.transfer(ledger.alice, accounts.carol, ether(5))
        with pytest.raises(InsufficientAllowance):
            ledger.staking.stake(accounts.carol, ether(5))
        assert ledger.staking.total_staked() == 0

    def test_top_up_keeps_stake_age(self, ledger):
        ledger.staking.stake(ledger.alice, ether(1))
        since = ledger.staking.staking_since(ledger.alice)
        ledger.env.advance(WEEK)

        ledger.staking.stake(ledger.alice, ether(1))

        assert ledger.staking.staking_since(ledger.alice) == since
        assert ledger.staking.get_voting_power(ledger.alice) == ether("2.5")

    def test_unstake_returns_tokens(self, ledger):
        ledger.staking.stake(ledger.alice, ether(10))
        ledger.staking.unstake(ledger.alice, ether(4))

        assert ledger.staking.staked_amount(ledger.alice) == ether(6)
        assert ledger.staking.total_staked() == ether(6)
        assert ledger.token.balance_of(ledger.alice) == ether(994)

    def test_partial_unstake_keeps_multiplier(self, ledger):
        ledger.staking.stake(ledger.alice, ether(10))
        ledger.env.advance(MONTH)
        ledger.staking.unstake(ledger.alice, ether(4))

        assert ledger.staking.get_multiplier(ledger.alice) == 15_000
        assert ledger.staking.get_voting_power(ledger.alice) == ether(9)

    def test_full_unstake_resets_stake_age(self, ledger):
        ledger.staking.stake(ledger.alice, ether(10))
        ledger.env.advance(THREE_MONTHS)
        ledger.staking.unstake(ledger.alice, ether(10))

        assert ledger.staking.staking_since(ledger.alice) is None
        assert ledger.staking.get_voting_power(ledger.alice) == 0

        ledger.staking.stake(ledger.alice, ether(1))
        assert ledger.staking.get_multiplier(ledger.alice) == BPS_DENOMINATOR
        assert ledger.staking.get_voting_power(ledger.alice) == ether(1)

    def test_unstake_more_than_staked_fails(self, ledger):
        ledger.staking.stake(ledger.alice, ether(1))
        with pytest.raises(InsufficientStake):
            ledger.staking.unstake(ledger.alice, ether(2))
        assert ledger.staking.staked_amount(ledger.alice) == ether(1)

    def test_unstake_zero_fails(self, ledger):
        ledger.staking.stake(ledger.alice, ether(1))
        with pytest.raises(InsufficientStake):
            ledger.staking.unstake(ledger.alice, 0)

    def test_unstake_without_stake_fails(self, ledger):
        with pytest.raises(InsufficientStake):
            ledger.staking.unstake(ledger.bob, 1)

    def test_total_staked_tracks_all_accounts(self, ledger):
        ledger.staking.stake(ledger.alice, ether(3))
        ledger.staking.stake(ledger.bob, ether(7))
        ledger.staking.unstake(ledger.bob, ether(2))

        assert ledger.staking.total_staked() == ether(8)
        assert ledger.staking.total_staked() == sum(
            ledger.staking.staked_amount(account) for account in (ledger.alice, ledger.bob)
        )

    def test_voting_power_of_unknown_account_is_zero(self, ledger, accounts):
        assert ledger.staking.get_voting_power(accounts.carol) == 0
        assert ledger.staking.get_multiplier(accounts.carol) == BPS_DENOMINATOR
