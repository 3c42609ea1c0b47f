"""
Governance token.

A fungible token with ERC-20 semantics (balances, allowances,
``transfer_from``). At initialization the creator receives a fixed
allocation and the rest of the supply is minted to the treasury.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from ..core.environment import Contract, transactional
from ..crypto.addresses import is_zero_address, to_address
from ..errors.exceptions import (
    AlreadyInitialized,
    InsufficientAllowance,
    InsufficientBalance,
    ValidationError,
    ZeroRecipient,
)

logger = logging.getLogger(__name__)

DECIMALS = 18


@dataclass
class TokenState:
    """Storage of a governance token."""

    name: str
    symbol: str
    owner: str
    staking_contract: Optional[str] = None
    total_supply: int = 0
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str], int] = field(default_factory=dict)


class GovernanceToken(Contract):
    """ERC-20 style governance token."""

    VERSION = "1.0.0"

    def initialize(
        self,
        name: str,
        symbol: str,
        initial_supply: int,
        creator: str,
        treasury: str,
        owner: str,
        staking_contract: Optional[str] = None,
        creator_allocation: int = 10**DECIMALS,
    ) -> None:
        """Set up storage and mint the initial distribution."""
        if self.state is not None:
            raise AlreadyInitialized()
        if initial_supply < creator_allocation:
            raise ValidationError(
                "Initial supply below creator allocation",
                field="initial_supply",
                value=initial_supply,
                expected=f">= {creator_allocation}",
            )
        self.state = TokenState(
            name=name,
            symbol=symbol,
            owner=to_address(owner),
            staking_contract=to_address(staking_contract) if staking_contract else None,
        )
        self._mint(to_address(creator), creator_allocation)
        self._mint(to_address(treasury), initial_supply - creator_allocation)
        logger.info("token %s (%s) initialized with supply %d", name, symbol, initial_supply)

    def version(self) -> str:
        return self.VERSION

    def name(self) -> str:
        return self.state.name

    def symbol(self) -> str:
        return self.state.symbol

    def decimals(self) -> int:
        return DECIMALS

    def owner(self) -> str:
        return self.state.owner

    def staking_contract(self) -> Optional[str]:
        return self.state.staking_contract

    def total_supply(self) -> int:
        return self.state.total_supply

    def balance_of(self, account: str) -> int:
        return self.state.balances.get(to_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.state.allowances.get((to_address(owner), to_address(spender)), 0)

    @transactional
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``recipient``."""
        self._transfer(to_address(sender), recipient, amount)
        return True

    @transactional
    def approve(self, sender: str, spender: str, amount: int) -> bool:
        """Allow ``spender`` to move up to ``amount`` of ``sender``'s tokens."""
        if amount < 0:
            raise ValidationError("Allowance must be non-negative", field="amount", value=amount)
        if is_zero_address(spender):
            raise ValidationError("Invalid spender", field="spender", value=spender)
        owner, spender = to_address(sender), to_address(spender)
        self.state.allowances[(owner, spender)] = amount
        self.emit("Approval", owner=owner, spender=spender, value=amount)
        return True

    @transactional
    def transfer_from(self, sender: str, owner: str, recipient: str, amount: int) -> bool:
        """Spend ``sender``'s allowance to move ``owner``'s tokens."""
        spender, owner = to_address(sender), to_address(owner)
        allowed = self.state.allowances.get((owner, spender), 0)
        if allowed < amount:
            raise InsufficientAllowance(
                metadata={"owner": owner, "spender": spender, "allowance": allowed, "needed": amount}
            )
        self.state.allowances[(owner, spender)] = allowed - amount
        self._transfer(owner, recipient, amount)
        return True

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError("Transfer amount must be non-negative", field="amount", value=amount)
        if is_zero_address(recipient):
            raise ZeroRecipient(field="recipient")
        recipient = to_address(recipient)
        balance = self.state.balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(
                metadata={"account": sender, "balance": balance, "needed": amount}
            )
        self.state.balances[sender] = balance - amount
        self.state.balances[recipient] = self.state.balances.get(recipient, 0) + amount
        self.emit("Transfer", sender=sender, recipient=recipient, value=amount)

    def _mint(self, account: str, amount: int) -> None:
        self.state.total_supply += amount
        self.state.balances[account] = self.state.balances.get(account, 0) + amount
        self.emit("Transfer", sender=None, recipient=account, value=amount)
