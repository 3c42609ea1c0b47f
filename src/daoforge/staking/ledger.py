"""
Staking ledger and voting-power engine.

Stakers lock governance tokens with the ledger and earn voting power equal
to their staked amount scaled by a time-held multiplier. Multipliers are
expressed in basis points (10000 = 1.00x) so all arithmetic stays integral.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.clock import MONTH, THREE_MONTHS, WEEK
from ..core.environment import Contract, transactional
from ..crypto.addresses import to_address
from ..errors.exceptions import (
    AlreadyInitialized,
    ConfigurationError,
    InsufficientStake,
    ZeroAmount,
)

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000

DEFAULT_MULTIPLIER_TIERS: Tuple[Tuple[int, int], ...] = (
    (0, 10_000),
    (WEEK, 12_500),
    (MONTH, 15_000),
    (THREE_MONTHS, 20_000),
)


@dataclass
class StakingConfig:
    """Multiplier schedule: ``(minimum seconds held, multiplier bps)`` pairs."""

    multiplier_tiers: Tuple[Tuple[int, int], ...] = DEFAULT_MULTIPLIER_TIERS

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.multiplier_tiers = tuple(tuple(tier) for tier in self.multiplier_tiers)
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if not self.multiplier_tiers:
            raise ConfigurationError("At least one multiplier tier is required", config_key="multiplier_tiers")

        if self.multiplier_tiers[0][0] != 0:
            raise ConfigurationError("First multiplier tier must start at 0 seconds", config_key="multiplier_tiers")

        previous_duration, previous_bps = -1, 0
        for duration, bps in self.multiplier_tiers:
            if duration <= previous_duration:
                raise ConfigurationError("Multiplier tiers must be strictly ascending", config_key="multiplier_tiers")
            if bps < previous_bps or bps <= 0:
                raise ConfigurationError("Multipliers must be positive and non-decreasing", config_key="multiplier_tiers")
            previous_duration, previous_bps = duration, bps

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StakingConfig":
        """Create config from dictionary."""
        tiers = data.get("multiplier_tiers", DEFAULT_MULTIPLIER_TIERS)
        return cls(multiplier_tiers=tuple((int(d), int(b)) for d, b in tiers))


@dataclass
class Stake:
    """A staker's position."""

    owner: str
    amount: int = 0
    since: Optional[int] = None


@dataclass
class StakingState:
    """Storage of the staking ledger."""

    token: str
    owner: str
    multiplier_tiers: Tuple[Tuple[int, int], ...]
    stakes: Dict[str, Stake] = field(default_factory=dict)
    total_staked: int = 0


def multiplier_for(duration: int, tiers: Sequence[Tuple[int, int]]) -> int:
    """Multiplier (bps) earned after holding a stake for ``duration`` seconds."""
    multiplier = tiers[0][1]
    for min_duration, bps in tiers:
        if duration >= min_duration:
            multiplier = bps
        else:
            break
    return multiplier


class VotingPowerLedger(Contract):
    """Tracks stakes and derives time-multiplied voting power."""

    VERSION = "1.0.0"

    def initialize(self, token: str, owner: str, config: Optional[StakingConfig] = None) -> None:
        """Bind the ledger to its governance token and owning DAO."""
        if self.state is not None:
            raise AlreadyInitialized()
        config = config or StakingConfig()
        self.state = StakingState(
            token=to_address(token),
            owner=to_address(owner),
            multiplier_tiers=config.multiplier_tiers,
        )

    def version(self) -> str:
        return self.VERSION

    def token(self) -> str:
        return self.state.token

    def owner(self) -> str:
        return self.state.owner

    @transactional
    def stake(self, sender: str, amount: int) -> None:
        """Lock ``amount`` tokens from ``sender`` (requires prior approval)."""
        if amount <= 0:
            raise ZeroAmount(field="amount", value=amount)

        account = to_address(sender)
        token = self.env.contract_at(self.state.token)
        token.transfer_from(self.address, account, self.address, amount)

        position = self.state.stakes.setdefault(account, Stake(owner=account))
        if position.amount == 0:
            position.since = self.now
        position.amount += amount
        self.state.total_staked += amount

        self.emit("Staked", account=account, amount=amount)
        logger.debug("%s staked %d (total %d)", account, amount, position.amount)

    @transactional
    def unstake(self, sender: str, amount: int) -> None:
        """Return ``amount`` staked tokens to ``sender``."""
        account = to_address(sender)
        position = self.state.stakes.get(account)
        staked = position.amount if position else 0
        if not 0 < amount <= staked:
            raise InsufficientStake(metadata={"account": account, "staked": staked, "requested": amount})

        position.amount -= amount
        if position.amount == 0:
            position.since = None
        self.state.total_staked -= amount

        token = self.env.contract_at(self.state.token)
        token.transfer(self.address, account, amount)

        self.emit("Unstaked", account=account, amount=amount)
        logger.debug("%s unstaked %d (remaining %d)", account, amount, position.amount)

    def staked_amount(self, account: str) -> int:
        position = self.state.stakes.get(to_address(account))
        return position.amount if position else 0

    def staking_since(self, account: str) -> Optional[int]:
        position = self.state.stakes.get(to_address(account))
        return position.since if position else None

    def total_staked(self) -> int:
        return self.state.total_staked

    def get_multiplier(self, account: str) -> int:
        """Current multiplier of ``account`` in basis points."""
        since = self.staking_since(account)
        if since is None:
            return BPS_DENOMINATOR
        return multiplier_for(self.now - since, self.state.multiplier_tiers)

    def get_voting_power(self, account: str) -> int:
        """Staked amount scaled by the time-held multiplier."""
        amount = self.staked_amount(account)
        if amount == 0:
            return 0
        return amount * self.get_multiplier(account) // BPS_DENOMINATOR
