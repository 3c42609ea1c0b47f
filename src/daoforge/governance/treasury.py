"""
DAO treasury.

A passive holder of native ETH and ERC-20 assets. Funds leave only through
:meth:`Treasury.release_asset`, which the owning DAO calls while executing
an approved proposal.
"""

import logging
from dataclasses import dataclass

from ..core.environment import Contract, transactional
from ..crypto.addresses import is_zero_address, to_address
from ..errors.exceptions import (
    AlreadyInitialized,
    InsufficientBalance,
    OnlyDAO,
    ZeroAmount,
    ZeroRecipient,
)

logger = logging.getLogger(__name__)


@dataclass
class TreasuryState:
    dao: str


class Treasury(Contract):
    """Holds a DAO's assets; releases them on the DAO's instruction."""

    VERSION = "1.0.0"

    def initialize(self, dao: str) -> None:
        if self.state is not None:
            raise AlreadyInitialized()
        self.state = TreasuryState(dao=to_address(dao))

    def version(self) -> str:
        return self.VERSION

    def dao(self) -> str:
        return self.state.dao

    def balance_of_asset(self, asset: str) -> int:
        """Treasury holdings of ``asset`` (the zero address means native ETH)."""
        if is_zero_address(asset):
            return self.env.balance_of(self.address)
        return self.env.contract_at(asset).balance_of(self.address)

    @transactional
    def release_asset(self, sender: str, asset: str, recipient: str, amount: int) -> None:
        """Send ``amount`` of ``asset`` to ``recipient``."""
        if to_address(sender) != self.state.dao:
            raise OnlyDAO(metadata={"sender": sender})
        if amount <= 0:
            raise ZeroAmount(field="amount", value=amount)
        if is_zero_address(recipient):
            raise ZeroRecipient(field="recipient")

        if is_zero_address(asset):
            self.env.transfer_value(self.address, recipient, amount)
        else:
            token = self.env.contract_at(asset)
            balance = token.balance_of(self.address)
            if balance < amount:
                raise InsufficientBalance(metadata={"asset": asset, "balance": balance, "needed": amount})
            token.transfer(self.address, recipient, amount)

        self.emit("AssetReleased", asset=to_address(asset), recipient=to_address(recipient), amount=amount)
        logger.info("treasury %s released %d of %s to %s", self.address, amount, asset, recipient)

    @transactional
    def receive(self, sender: str, value: int = 0) -> None:
        """Accept a plain ETH transfer of any amount."""
        self.env.transfer_value(sender, self.address, value)
        self.emit("Received", sender=to_address(sender), value=value)
