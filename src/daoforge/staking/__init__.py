"""Staking ledger and voting power."""

from .ledger import (
    BPS_DENOMINATOR,
    DEFAULT_MULTIPLIER_TIERS,
    Stake,
    StakingConfig,
    StakingState,
    VotingPowerLedger,
    multiplier_for,
)

__all__ = [
    "BPS_DENOMINATOR",
    "DEFAULT_MULTIPLIER_TIERS",
    "Stake",
    "StakingConfig",
    "StakingState",
    "VotingPowerLedger",
    "multiplier_for",
]
