"""Tiered bonding-curve presale."""

from .market import BondingCurveMarket, MarketState
from .tiers import (
    ONE,
    PresaleConfig,
    PresaleStatus,
    Tier,
    TierQuote,
    build_tiers,
    current_price,
    current_tier_index,
    quote_buy,
    quote_sell,
)

__all__ = [
    "BondingCurveMarket",
    "MarketState",
    "ONE",
    "PresaleConfig",
    "PresaleStatus",
    "Tier",
    "TierQuote",
    "build_tiers",
    "current_price",
    "current_tier_index",
    "quote_buy",
    "quote_sell",
]
