"""
Tiered bonding-curve pricing.

The presale supply is split into equal-sized tiers with geometrically
increasing fixed prices. Buys fill tiers strictly in ascending order and
sells refill them in reverse (LIFO), each tier always trading at its own
price. All amounts are integers with 18 decimals and every division floors.

The functions here are pure: they read a list of :class:`Tier` and return
quotes; the market applies the quoted per-tier amounts to its storage.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from ..errors.exceptions import ConfigurationError, ValidationError, ZeroAmount, ZeroInitialPrice

logger = logging.getLogger(__name__)

ONE = 10**18


@dataclass
class PresaleConfig:
    """Shape of the bonding curve."""

    tier_count: int = 10
    tier_multiplier: int = 125
    multiplier_denominator: int = 100

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if self.tier_count <= 0:
            raise ConfigurationError("Tier count must be positive", config_key="tier_count")

        if self.multiplier_denominator <= 0:
            raise ConfigurationError("Multiplier denominator must be positive", config_key="multiplier_denominator")

        if self.tier_multiplier < self.multiplier_denominator:
            raise ConfigurationError("Tier prices must not decrease", config_key="tier_multiplier")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PresaleConfig":
        """Create config from dictionary."""
        return cls(
            tier_count=int(data.get("tier_count", 10)),
            tier_multiplier=int(data.get("tier_multiplier", 125)),
            multiplier_denominator=int(data.get("multiplier_denominator", 100)),
        )


@dataclass
class Tier:
    """One fixed-price bracket of the curve."""

    index: int
    price: int
    capacity: int
    sold: int = 0

    @property
    def remaining(self) -> int:
        return self.capacity - self.sold

    @property
    def is_full(self) -> bool:
        return self.sold >= self.capacity


@dataclass(frozen=True)
class TierQuote:
    """Per-tier breakdown of a buy or sell.

    ``prices_per_tier`` and ``amounts_per_tier`` are indexed by absolute tier
    index; ``amounts_per_tier[i]`` is the number of tokens transacted in tier
    ``i``.
    """

    tokens: int
    eth: int
    current_price: int
    prices_per_tier: Tuple[int, ...]
    amounts_per_tier: Tuple[int, ...]


@dataclass(frozen=True)
class PresaleStatus:
    """Snapshot of the presale's position on the curve."""

    current_tier: int
    current_price: int
    remaining_in_tier: int
    total_remaining: int
    total_raised: int

    def __iter__(self):
        return iter(
            (self.current_tier, self.current_price, self.remaining_in_tier, self.total_remaining, self.total_raised)
        )


def build_tiers(total_amount: int, initial_price: int, config: PresaleConfig) -> List[Tier]:
    """Instantiate every tier for a presale of ``total_amount`` tokens.

    Capacity is ``total_amount // tier_count``; the division remainder is
    added to the final tier so the whole funded supply is for sale.
    """
    if total_amount <= 0:
        raise ZeroAmount(field="total_amount", value=total_amount)
    if initial_price <= 0:
        raise ZeroInitialPrice(field="initial_price", value=initial_price)

    tokens_per_tier = total_amount // config.tier_count
    if tokens_per_tier == 0:
        raise ValidationError(
            "Presale amount too small for tier count",
            field="total_amount",
            value=total_amount,
            expected=f">= {config.tier_count}",
        )
    remainder = total_amount - tokens_per_tier * config.tier_count

    tiers = []
    price = initial_price
    for index in range(config.tier_count):
        capacity = tokens_per_tier
        if index == config.tier_count - 1:
            capacity += remainder
        tiers.append(Tier(index=index, price=price, capacity=capacity))
        price = price * config.tier_multiplier // config.multiplier_denominator
    return tiers


def current_tier_index(tiers: Sequence[Tier]) -> int:
    """Lowest tier with unsold capacity, or ``len(tiers)`` once all are full."""
    for tier in tiers:
        if not tier.is_full:
            return tier.index
    return len(tiers)


def current_price(tiers: Sequence[Tier]) -> int:
    """Price of the current tier (the last tier's price once sold out)."""
    index = current_tier_index(tiers)
    return tiers[min(index, len(tiers) - 1)].price


def tokens_sold(tiers: Sequence[Tier]) -> int:
    return sum(tier.sold for tier in tiers)


def quote_buy(tiers: Sequence[Tier], eth_in: int) -> TierQuote:
    """Tokens obtainable for ``eth_in``, walking tiers forward.

    Each tier yields ``min(remaining, eth * 1e18 // price)`` tokens costing
    ``tokens * price // 1e18``; the walk moves on only once a tier is
    exhausted. ETH left over when the supply runs out is not part of the
    quote's ``eth``.
    """
    amounts = [0] * len(tiers)
    eth_remaining = eth_in
    total_tokens = 0
    index = current_tier_index(tiers)

    while index < len(tiers) and eth_remaining > 0:
        tier = tiers[index]
        available = tier.remaining
        affordable = min(available, eth_remaining * ONE // tier.price)
        if affordable == 0:
            break

        amounts[index] = affordable
        total_tokens += affordable
        eth_remaining -= affordable * tier.price // ONE

        if affordable < available:
            break
        index += 1

    return TierQuote(
        tokens=total_tokens,
        eth=eth_in - eth_remaining,
        current_price=current_price(tiers),
        prices_per_tier=tuple(tier.price for tier in tiers),
        amounts_per_tier=tuple(amounts),
    )


def quote_sell(tiers: Sequence[Tier], token_amount: int) -> TierQuote:
    """ETH returned for ``token_amount``, refilling tiers backward (LIFO).

    Tokens beyond what has been sold are priced at the lowest tier reached,
    so the quote is defined for any amount; the market refuses to execute
    such a sell.
    """
    amounts = [0] * len(tiers)
    remaining = token_amount
    eth = 0
    index = min(current_tier_index(tiers), len(tiers) - 1)

    while remaining > 0:
        tier = tiers[index]
        take = min(remaining, tier.sold)
        if take:
            amounts[index] += take
            eth += take * tier.price // ONE
            remaining -= take

        if remaining == 0:
            break
        if index == 0:
            amounts[index] += remaining
            eth += remaining * tier.price // ONE
            remaining = 0
            break
        index -= 1

    return TierQuote(
        tokens=token_amount,
        eth=eth,
        current_price=current_price(tiers),
        prices_per_tier=tuple(tier.price for tier in tiers),
        amounts_per_tier=tuple(amounts),
    )


def apply_buy(tiers: List[Tier], quote: TierQuote) -> None:
    """Mark the quoted tokens as sold."""
    for tier, amount in zip(tiers, quote.amounts_per_tier):
        tier.sold += amount


def apply_sell(tiers: List[Tier], quote: TierQuote) -> None:
    """Return the quoted tokens to their tiers."""
    for tier, amount in zip(tiers, quote.amounts_per_tier):
        if amount > tier.sold:
            raise ValidationError("Sell exceeds tokens sold in tier", field="tier", value=tier.index)
        tier.sold -= amount
