"""
Bonding-curve presale market.

A :class:`BondingCurveMarket` sells a fixed, pre-funded token supply along a
tiered price curve and buys tokens back at the price of the tier they are
returned to. It escrows the ETH it raises until the DAO withdraws it to the
treasury, and the DAO may pause buying at any time.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.environment import Contract, transactional
from ..crypto.addresses import is_zero_address, to_address
from ..errors.exceptions import (
    AlreadyInitialized,
    InsufficientETHBalance,
    NotEnoughTokens,
    OnlyDAO,
    PresaleIsPaused,
    SlippageTooHigh,
    TransactionExpired,
    ValidationError,
    ZeroETHSent,
    ZeroTokens,
)
from .tiers import (
    PresaleConfig,
    PresaleStatus,
    Tier,
    TierQuote,
    apply_buy,
    apply_sell,
    build_tiers,
    current_price,
    current_tier_index,
    quote_buy,
    quote_sell,
    tokens_sold,
)

logger = logging.getLogger(__name__)


@dataclass
class MarketState:
    """Storage of a presale market."""

    token: str
    treasury: str
    dao: str
    total_amount: int
    initial_price: int
    tier_multiplier: int
    multiplier_denominator: int
    tiers: List[Tier] = field(default_factory=list)
    total_raised: int = 0
    paused: bool = False
    ended: bool = False


class BondingCurveMarket(Contract):
    """Tiered bonding-curve presale for a DAO's governance token."""

    VERSION = "1.0.0"

    def initialize(
        self,
        token: str,
        treasury: str,
        dao: str,
        total_amount: int,
        initial_price: int,
        config: Optional[PresaleConfig] = None,
    ) -> None:
        """Lay out the tiers for ``total_amount`` tokens starting at ``initial_price`` wei."""
        if self.state is not None:
            raise AlreadyInitialized()
        for name, address in (("token", token), ("treasury", treasury), ("dao", dao)):
            if not address or is_zero_address(address):
                raise ValidationError(f"Invalid {name} address", field=name, value=address)

        config = config or PresaleConfig()
        tiers = build_tiers(total_amount, initial_price, config)
        self.state = MarketState(
            token=to_address(token),
            treasury=to_address(treasury),
            dao=to_address(dao),
            total_amount=total_amount,
            initial_price=initial_price,
            tier_multiplier=config.tier_multiplier,
            multiplier_denominator=config.multiplier_denominator,
            tiers=tiers,
        )
        logger.info(
            "presale %s initialized: %d tokens over %d tiers from %d wei",
            self.address,
            total_amount,
            len(tiers),
            initial_price,
        )

    # Views

    def version(self) -> str:
        return self.VERSION

    def token(self) -> str:
        return self.state.token

    def treasury(self) -> str:
        return self.state.treasury

    def dao(self) -> str:
        return self.state.dao

    def paused(self) -> bool:
        return self.state.paused

    def total_amount(self) -> int:
        return self.state.total_amount

    def initial_price(self) -> int:
        return self.state.initial_price

    def total_raised(self) -> int:
        return self.state.total_raised

    def tier_count(self) -> int:
        return len(self.state.tiers)

    def tokens_per_tier(self) -> int:
        return self.state.tiers[0].capacity

    def tier_prices(self) -> List[int]:
        return [tier.price for tier in self.state.tiers]

    def get_tier(self, index: int) -> Tier:
        if not 0 <= index < len(self.state.tiers):
            raise ValidationError("Tier index out of range", field="index", value=index)
        tier = self.state.tiers[index]
        return Tier(index=tier.index, price=tier.price, capacity=tier.capacity, sold=tier.sold)

    def get_current_tier(self) -> int:
        """Index of the tier currently on sale; equals the tier count once sold out."""
        return current_tier_index(self.state.tiers)

    def get_current_price(self) -> int:
        return current_price(self.state.tiers)

    def get_remaining_in_current_tier(self) -> int:
        index = self.get_current_tier()
        if index >= len(self.state.tiers):
            return 0
        return self.state.tiers[index].remaining

    def get_tokens_sold(self) -> int:
        return tokens_sold(self.state.tiers)

    def get_total_remaining(self) -> int:
        return self.state.total_amount - self.get_tokens_sold()

    def get_presale_state(self) -> PresaleStatus:
        return PresaleStatus(
            current_tier=self.get_current_tier(),
            current_price=self.get_current_price(),
            remaining_in_tier=self.get_remaining_in_current_tier(),
            total_remaining=self.get_total_remaining(),
            total_raised=self.state.total_raised,
        )

    def is_ended(self) -> bool:
        return self.state.ended

    # Quotes

    def calculate_purchase(self, eth_in: int) -> int:
        """Tokens that ``eth_in`` wei would buy right now."""
        return quote_buy(self.state.tiers, eth_in).tokens

    def calculate_purchase_across_tiers(self, eth_in: int) -> int:
        """Tokens ``eth_in`` wei buys when the purchase spills over several tiers."""
        return quote_buy(self.state.tiers, eth_in).tokens

    def calculate_sell_return(self, token_amount: int) -> int:
        """ETH that selling ``token_amount`` would return right now."""
        return quote_sell(self.state.tiers, token_amount).eth

    def quote_tokens_for_exact_eth(self, eth_in: int) -> TierQuote:
        return quote_buy(self.state.tiers, eth_in)

    def quote_eth_for_exact_tokens(self, token_amount: int) -> TierQuote:
        return quote_sell(self.state.tiers, token_amount)

    # Trading

    @transactional
    def buy(self, sender: str, min_tokens_expected: int, deadline: int, value: int = 0) -> int:
        """Spend ``value`` wei on tokens, walking the curve upward."""
        if self.now > deadline:
            raise TransactionExpired(metadata={"deadline": deadline, "now": self.now})
        if value <= 0:
            raise ZeroETHSent(field="value", value=value)
        if self.state.paused:
            raise PresaleIsPaused()

        buyer = to_address(sender)
        self.env.transfer_value(buyer, self.address, value)

        quote = quote_buy(self.state.tiers, value)
        if quote.tokens == 0:
            raise NotEnoughTokens(metadata={"eth_in": value})
        if quote.tokens < min_tokens_expected:
            raise SlippageTooHigh(metadata={"expected": min_tokens_expected, "quoted": quote.tokens})

        token = self.env.contract_at(self.state.token)
        if token.balance_of(self.address) < quote.tokens:
            raise NotEnoughTokens(metadata={"available": token.balance_of(self.address), "needed": quote.tokens})

        apply_buy(self.state.tiers, quote)
        self.state.total_raised += value
        token.transfer(self.address, buyer, quote.tokens)

        self.emit("TokensPurchased", buyer=buyer, eth_in=value, tokens=quote.tokens)
        logger.info("%s bought %d tokens for %d wei", buyer, quote.tokens, value)

        if current_tier_index(self.state.tiers) >= len(self.state.tiers) and not self.state.ended:
            self.state.ended = True
            self.emit("PresaleEnded", total_raised=self.state.total_raised)
            logger.info("presale %s sold out, raised %d wei", self.address, self.state.total_raised)

        return quote.tokens

    @transactional
    def sell(self, sender: str, token_amount: int, min_eth_expected: int, deadline: int) -> int:
        """Return ``token_amount`` tokens (approved beforehand) for ETH, walking the curve downward."""
        if self.now > deadline:
            raise TransactionExpired(metadata={"deadline": deadline, "now": self.now})
        if token_amount <= 0:
            raise ZeroTokens(field="token_amount", value=token_amount)

        seller = to_address(sender)
        quote = quote_sell(self.state.tiers, token_amount)
        balance = self.env.balance_of(self.address)
        if balance < quote.eth:
            raise InsufficientETHBalance(metadata={"balance": balance, "needed": quote.eth})
        if token_amount > tokens_sold(self.state.tiers):
            raise NotEnoughTokens(metadata={"sold": tokens_sold(self.state.tiers), "requested": token_amount})
        if quote.eth < min_eth_expected:
            raise SlippageTooHigh(metadata={"expected": min_eth_expected, "quoted": quote.eth})

        token = self.env.contract_at(self.state.token)
        token.transfer_from(self.address, seller, self.address, token_amount)

        apply_sell(self.state.tiers, quote)
        self.state.total_raised -= min(quote.eth, self.state.total_raised)
        self.state.ended = False
        self.env.transfer_value(self.address, seller, quote.eth)

        self.emit("TokensSold", seller=seller, tokens=token_amount, eth=quote.eth)
        logger.info("%s sold %d tokens for %d wei", seller, token_amount, quote.eth)
        return quote.eth

    # Administration

    def _only_dao(self, sender: str) -> None:
        if to_address(sender) != self.state.dao:
            raise OnlyDAO(metadata={"sender": sender})

    @transactional
    def set_paused(self, sender: str, paused: bool) -> None:
        self._only_dao(sender)
        self.state.paused = bool(paused)
        self.emit("Paused", paused=self.state.paused)
        logger.info("presale %s %s", self.address, "paused" if paused else "unpaused")

    @transactional
    def withdraw_to_treasury(self, sender: str) -> int:
        """Send the whole ETH balance to the treasury."""
        self._only_dao(sender)
        amount = self.env.balance_of(self.address)
        self.env.transfer_value(self.address, self.state.treasury, amount)
        self.emit("WithdrawnToTreasury", treasury=self.state.treasury, amount=amount)
        logger.info("presale %s withdrew %d wei to treasury", self.address, amount)
        return amount

    @transactional
    def receive(self, sender: str, value: int = 0) -> None:
        """Accept a plain ETH transfer of any amount."""
        self.env.transfer_value(sender, self.address, value)
        self.emit("Received", sender=to_address(sender), value=value)
