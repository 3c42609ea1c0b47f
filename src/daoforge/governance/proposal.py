"""
Proposal records and their kind-specific payloads.

A :class:`Proposal` carries the lifecycle fields shared by every kind; the
payload of each kind is a separate dataclass stored alongside it, keyed by
proposal id.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..errors.exceptions import ValidationError


class ProposalKind(Enum):
    """Kind of governance proposal."""

    TRANSFER = "transfer"
    UPGRADE = "upgrade"
    PRESALE = "presale"
    PRESALE_PAUSE = "presale_pause"
    PRESALE_WITHDRAW = "presale_withdraw"
    PAUSE = "pause"
    UNPAUSE = "unpause"


class ProposalState(Enum):
    """Lifecycle position of a proposal."""

    ACTIVE = "active"  # within the voting window
    DECIDED = "decided"  # window closed, not executed
    EXECUTED = "executed"


class UpgradeableContract(Enum):
    """Proxy slots an upgrade proposal can repoint."""

    DAO = "dao"
    TOKEN = "token"
    TREASURY = "treasury"
    STAKING = "staking"
    PRESALE = "presale"

    @classmethod
    def parse(cls, value: Union["UpgradeableContract", str]) -> "UpgradeableContract":
        """Coerce ``value`` to a slot, rejecting unknown names."""
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(
                f"Unknown contract type {value!r}",
                field="contract_type",
                value=value,
                expected=[slot.value for slot in cls],
            ) from None


@dataclass
class Proposal:
    """A governance proposal."""

    proposal_id: int
    kind: ProposalKind
    proposer: str
    created_at: int
    deadline: int
    for_votes: int = 0
    against_votes: int = 0
    executed: bool = False
    executed_at: Optional[int] = None

    @property
    def total_votes(self) -> int:
        return self.for_votes + self.against_votes

    def state_at(self, now: int) -> ProposalState:
        if self.executed:
            return ProposalState.EXECUTED
        if now < self.deadline:
            return ProposalState.ACTIVE
        return ProposalState.DECIDED

    def to_dict(self) -> Dict[str, Any]:
        """Convert proposal to dictionary."""
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass(frozen=True)
class TransferData:
    token: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class UpgradeData:
    contract_type: UpgradeableContract
    new_version: str


@dataclass(frozen=True)
class PresaleData:
    amount: int
    initial_price: int


@dataclass(frozen=True)
class PresalePauseData:
    presale: str
    pause: bool


@dataclass(frozen=True)
class PresaleWithdrawData:
    presale: str


ProposalPayload = Union[TransferData, UpgradeData, PresaleData, PresalePauseData, PresaleWithdrawData, None]
