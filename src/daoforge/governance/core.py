"""
Core governance configuration and storage.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..core.clock import DAY
from ..errors.exceptions import ConfigurationError, ProposalNotFound
from ..presale.tiers import PresaleConfig
from .proposal import Proposal, ProposalPayload, UpgradeableContract

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000


@dataclass
class GovernanceConfig:
    """Configuration for a DAO's governance."""

    voting_period: int = 3 * DAY
    min_proposal_stake: int = 10**18
    quorum_bps: int = 1000

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if self.voting_period <= 0:
            raise ConfigurationError("Voting period must be positive", config_key="voting_period")

        if self.min_proposal_stake < 0:
            raise ConfigurationError("Minimum proposal stake must be non-negative", config_key="min_proposal_stake")

        if not 0 <= self.quorum_bps <= BPS_DENOMINATOR:
            raise ConfigurationError("Quorum must be between 0 and 10000 bps", config_key="quorum_bps")

    def quorum_for(self, total_staked: int) -> int:
        """Votes required for a tally to count."""
        return self.quorum_bps * total_staked // BPS_DENOMINATOR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceConfig":
        """Create config from dictionary."""
        return cls(
            voting_period=int(data.get("voting_period", 3 * DAY)),
            min_proposal_stake=int(data.get("min_proposal_stake", 10**18)),
            quorum_bps=int(data.get("quorum_bps", 1000)),
        )


@dataclass
class GovernanceState:
    """Storage of a DAO."""

    name: str
    registry: str
    token: str
    treasury: str
    staking: str
    config: GovernanceConfig
    presale_config: PresaleConfig
    implementation_versions: Dict[UpgradeableContract, str] = field(default_factory=dict)
    proposals: Dict[int, Proposal] = field(default_factory=dict)
    payloads: Dict[int, ProposalPayload] = field(default_factory=dict)
    votes: Dict[Tuple[int, str], int] = field(default_factory=dict)
    voters: Set[Tuple[int, str]] = field(default_factory=set)
    presales: Dict[int, str] = field(default_factory=dict)
    live_presales: List[str] = field(default_factory=list)
    paused: bool = False

    # Metrics
    executed_proposals: int = 0

    @property
    def proposal_count(self) -> int:
        return len(self.proposals)

    def get_proposal(self, proposal_id: int) -> Proposal:
        """Get a proposal by ID."""
        proposal = self.proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFound(f"Proposal {proposal_id} not found", proposal_id=proposal_id)
        return proposal

    def add_proposal(self, proposal: Proposal, payload: ProposalPayload) -> None:
        """Add a proposal and its payload to the state."""
        self.proposals[proposal.proposal_id] = proposal
        self.payloads[proposal.proposal_id] = payload

    def is_live_presale(self, address: Optional[str]) -> bool:
        return address is not None and address in self.live_presales
