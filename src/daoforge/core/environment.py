"""
Execution environment for daoforge contracts.

The environment plays the role of the host chain: it owns the clock, the
native-currency (ETH) balances, the contract directory and the event log,
and it provides all-or-nothing transactions through :meth:`Environment.atomic`.
Every public state-changing contract operation runs inside ``atomic()``, so a
failure anywhere in a call leaves no partial state behind.
"""

import copy
import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

from ..crypto.addresses import account_address, contract_address, is_zero_address, to_address
from ..errors.exceptions import DAOForgeError, InsufficientBalance, ValidationError
from .clock import DEFAULT_GENESIS_TIME, Clock
from .events import ContractEvent, EventLog

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Contract:
    """Base class for every contract living in an :class:`Environment`.

    A contract keeps all of its mutable data in ``self.state`` (a plain
    dataclass) so the environment can snapshot and restore it.
    """

    def __init__(self, env: "Environment", address: str):
        self.env = env
        self.address = address
        self.state: Any = None

    def snapshot(self) -> Any:
        """Capture the contract's mutable state."""
        return copy.deepcopy(self.state)

    def restore(self, snapshot: Any) -> None:
        """Restore state captured by :meth:`snapshot`."""
        self.state = snapshot

    def emit(self, name: str, **args: Any) -> ContractEvent:
        """Emit an event from this contract."""
        return self.env.emit(self.address, name, **args)

    @property
    def now(self) -> int:
        return self.env.now


def _fill_context(error: DAOForgeError, contract: Contract, operation: str, sender: Any) -> None:
    """Record where ``error`` was raised; the innermost call wins."""
    context = error.context
    if context.contract is not None:
        return
    context.contract = contract.address
    context.operation = operation
    context.sender = sender if isinstance(sender, str) else None
    context.block_time = contract.env.now


def transactional(func: F) -> F:
    """Run a contract method inside ``self.env.atomic()``."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            with self.env.atomic():
                return func(self, *args, **kwargs)
        except DAOForgeError as error:
            sender = kwargs.get("sender", args[0] if args else None)
            _fill_context(error, self, func.__name__, sender)
            raise

    return wrapper  # type: ignore[return-value]


class Environment:
    """In-process host for contracts: clock, balances, directory, events."""

    def __init__(self, start_time: int = DEFAULT_GENESIS_TIME, clock: Optional[Clock] = None):
        self.clock = clock or Clock(start_time)
        self.event_log = EventLog()
        self._contracts: Dict[str, Any] = {}
        self._balances: Dict[str, int] = {}
        self._nonces: Dict[str, int] = {}
        self._depth = 0

    # Time

    @property
    def now(self) -> int:
        return self.clock.now()

    def advance(self, seconds: int) -> int:
        """Advance the clock by ``seconds``."""
        return self.clock.advance(seconds)

    # Accounts and native balances

    def new_account(self, label: str, balance: int = 0) -> str:
        """Create (or look up) an externally-owned account and fund it."""
        address = account_address(label)
        self._balances.setdefault(address, 0)
        if balance:
            self.fund(address, balance)
        return address

    def fund(self, address: str, amount: int) -> None:
        """Credit ``amount`` of native currency out of thin air (test faucet)."""
        if amount < 0:
            raise ValidationError("Funding amount must be non-negative", field="amount", value=amount)
        address = to_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount

    def balance_of(self, address: str) -> int:
        """Native-currency balance of ``address``."""
        return self._balances.get(to_address(address), 0)

    def transfer_value(self, sender: str, recipient: str, amount: int) -> None:
        """Move native currency between two addresses."""
        if amount < 0:
            raise ValidationError("Transfer amount must be non-negative", field="amount", value=amount)
        if amount == 0:
            return
        if is_zero_address(recipient):
            raise ValidationError("Cannot send value to the zero address", field="recipient")
        sender = to_address(sender)
        recipient = to_address(recipient)
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(
                "Insufficient ETH",
                metadata={"account": sender, "balance": balance, "needed": amount},
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    def send_value(self, sender: str, recipient: str, amount: int) -> None:
        """Plain value transfer; routed to the recipient's ``receive`` hook if it is a contract.

        Zero-value sends are allowed and still reach the hook.
        """
        target = self._contracts.get(to_address(recipient))
        if target is not None:
            if getattr(target, "receive", None) is None:
                raise ValidationError(
                    "Contract does not accept ETH", field="recipient", value=to_address(recipient)
                )
            target.receive(sender, value=amount)
        else:
            with self.atomic():
                self.transfer_value(sender, recipient, amount)

    # Contract directory

    def deploy(self, deployer: str, build: Callable[["Environment", str], Any]) -> Any:
        """Deploy a contract built by ``build(env, address)`` at a derived address."""
        deployer = to_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        address = contract_address(deployer, nonce)
        self._nonces[deployer] = nonce + 1
        contract = build(self, address)
        self._contracts[address] = contract
        self._balances.setdefault(address, 0)
        logger.debug("deployed %s at %s", type(contract).__name__, address)
        return contract

    def contract_at(self, address: str) -> Any:
        """Look up the contract deployed at ``address``."""
        contract = self._contracts.get(to_address(address))
        if contract is None:
            raise ValidationError(f"No contract at {address}", field="address", value=address)
        return contract

    def is_contract(self, address: str) -> bool:
        """Whether a contract is deployed at ``address``."""
        return not is_zero_address(address) and to_address(address) in self._contracts

    # Events

    def emit(self, emitter: str, name: str, **args: Any) -> ContractEvent:
        """Append an event to the log."""
        return self.event_log.append(emitter, name, args, self.now)

    def events(self, name: Optional[str] = None, emitter: Optional[str] = None):
        """Query the event log."""
        return self.event_log.events(name=name, emitter=emitter)

    # Transactions

    @contextmanager
    def atomic(self) -> Iterator["Environment"]:
        """All-or-nothing block: on any exception every change is undone.

        Nested blocks join the outermost one.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        contracts = dict(self._contracts)
        snapshots = {address: contract.snapshot() for address, contract in contracts.items()}
        balances = dict(self._balances)
        nonces = dict(self._nonces)
        event_count = len(self.event_log)

        self._depth = 1
        try:
            yield self
        except Exception as e:
            self._contracts = contracts
            for address, contract in contracts.items():
                contract.restore(snapshots[address])
            self._balances = balances
            self._nonces = nonces
            self.event_log.truncate(event_count)
            logger.warning("transaction reverted: %s", e)
            raise
        finally:
            self._depth = 0
