"""
DAO governance contract.

Stakers with enough voting power open proposals, stakeholders vote with the
voting power they hold when casting, and once the voting window closes
anyone may execute a proposal that reached quorum and a strict majority.

Proposal lifecycle::

    ACTIVE (now < deadline) -> DECIDED (now >= deadline) -> EXECUTED

A proposal whose execution fails (quorum, majority or its effect) stays
DECIDED and may be executed again later.
"""

import copy
import logging
from typing import Dict, List, Optional, Type, TypeVar, Union

from ..core.environment import Contract, transactional
from ..crypto.addresses import is_zero_address, to_address
from ..errors.exceptions import (
    AlreadyExecuted,
    AlreadyInitialized,
    AlreadyPaused,
    AlreadyVoted,
    DAOPaused,
    InsufficientVotingPower,
    InvalidVersion,
    NotPaused,
    ProposalRejected,
    QuorumNotReached,
    UnknownModule,
    ValidationError,
    VotingClosed,
    VotingOngoing,
    ZeroAmount,
    ZeroInitialPrice,
    ZeroRecipient,
)
from ..presale.tiers import PresaleConfig
from .core import GovernanceConfig, GovernanceState
from .execution import ExecutionEngine, ExecutionResult
from .proposal import (
    PresaleData,
    PresalePauseData,
    PresaleWithdrawData,
    Proposal,
    ProposalKind,
    ProposalPayload,
    ProposalState,
    TransferData,
    UpgradeableContract,
    UpgradeData,
)

logger = logging.getLogger(__name__)

P = TypeVar("P")


class Governance(Contract):
    """Proposal state machine of a DAO."""

    VERSION = "1.0.0"

    def initialize(
        self,
        name: str,
        registry: str,
        token: str,
        treasury: str,
        staking: str,
        version: str,
        config: Optional[GovernanceConfig] = None,
        presale_config: Optional[PresaleConfig] = None,
    ) -> None:
        """Wire the DAO to its modules."""
        if self.state is not None:
            raise AlreadyInitialized()
        for label, address in (("registry", registry), ("token", token), ("treasury", treasury), ("staking", staking)):
            if not address or is_zero_address(address):
                raise ValidationError(f"Invalid {label} address", field=label, value=address)

        self.state = GovernanceState(
            name=name,
            registry=to_address(registry),
            token=to_address(token),
            treasury=to_address(treasury),
            staking=to_address(staking),
            config=config or GovernanceConfig(),
            presale_config=presale_config or PresaleConfig(),
            implementation_versions={
                contract_type: version
                for contract_type in UpgradeableContract
                if contract_type != UpgradeableContract.PRESALE
            },
        )
        logger.info("DAO %s (%s) initialized at version %s", name, self.address, version)

    # Views

    def version(self) -> str:
        return self.VERSION

    def name(self) -> str:
        return self.state.name

    def owner(self) -> str:
        # A DAO owns itself.
        return self.address

    def registry(self) -> str:
        return self.state.registry

    def token(self) -> str:
        return self.state.token

    def treasury(self) -> str:
        return self.state.treasury

    def staking(self) -> str:
        return self.state.staking

    def paused(self) -> bool:
        return self.state.paused

    def voting_period(self) -> int:
        return self.state.config.voting_period

    def min_proposal_stake(self) -> int:
        return self.state.config.min_proposal_stake

    def quorum_bps(self) -> int:
        return self.state.config.quorum_bps

    def proposal_count(self) -> int:
        return self.state.proposal_count

    def upgradeable_contracts(self) -> Dict[UpgradeableContract, str]:
        """Addresses of the proxies a single-target upgrade can repoint."""
        return {
            UpgradeableContract.DAO: self.address,
            UpgradeableContract.TOKEN: self.state.token,
            UpgradeableContract.TREASURY: self.state.treasury,
            UpgradeableContract.STAKING: self.state.staking,
        }

    def implementation_version(self, contract_type: Union[UpgradeableContract, str]) -> Optional[str]:
        return self.state.implementation_versions.get(UpgradeableContract.parse(contract_type))

    def get_proposal(self, proposal_id: int) -> Proposal:
        return copy.copy(self.state.get_proposal(proposal_id))

    def proposal_state(self, proposal_id: int) -> ProposalState:
        return self.state.get_proposal(proposal_id).state_at(self.now)

    def has_voted(self, proposal_id: int, account: str) -> bool:
        return (proposal_id, to_address(account)) in self.state.voters

    def get_vote_weight(self, proposal_id: int, account: str) -> int:
        return self.state.votes.get((proposal_id, to_address(account)), 0)

    def get_transfer_data(self, proposal_id: int) -> TransferData:
        return self._payload(proposal_id, TransferData)

    def get_upgrade_data(self, proposal_id: int) -> UpgradeData:
        return self._payload(proposal_id, UpgradeData)

    def get_presale_data(self, proposal_id: int) -> PresaleData:
        return self._payload(proposal_id, PresaleData)

    def get_presale_pause_data(self, proposal_id: int) -> PresalePauseData:
        return self._payload(proposal_id, PresalePauseData)

    def get_presale_withdraw_data(self, proposal_id: int) -> PresaleWithdrawData:
        return self._payload(proposal_id, PresaleWithdrawData)

    def get_presale_contract(self, proposal_id: int) -> Optional[str]:
        """Presale deployed by executing ``proposal_id``, if any."""
        self.state.get_proposal(proposal_id)
        return self.state.presales.get(proposal_id)

    def live_presales(self) -> List[str]:
        return list(self.state.live_presales)

    def _payload(self, proposal_id: int, payload_type: Type[P]) -> P:
        self.state.get_proposal(proposal_id)
        payload = self.state.payloads.get(proposal_id)
        if not isinstance(payload, payload_type):
            raise ValidationError(
                f"Proposal {proposal_id} carries no {payload_type.__name__}",
                field="proposal_id",
                value=proposal_id,
            )
        return payload

    # Proposals

    def _create_proposal(self, sender: str, kind: ProposalKind, payload: ProposalPayload) -> int:
        proposer = to_address(sender)
        staking = self.env.contract_at(self.state.staking)
        power = staking.get_voting_power(proposer)
        if power < self.state.config.min_proposal_stake:
            raise InsufficientVotingPower(
                metadata={"proposer": proposer, "voting_power": power, "required": self.state.config.min_proposal_stake}
            )

        proposal = Proposal(
            proposal_id=self.state.proposal_count,
            kind=kind,
            proposer=proposer,
            created_at=self.now,
            deadline=self.now + self.state.config.voting_period,
        )
        self.state.add_proposal(proposal, payload)
        logger.info("proposal %d (%s) created by %s", proposal.proposal_id, kind.value, proposer)
        return proposal.proposal_id

    def _require_live_presale(self, presale: Optional[str]) -> str:
        address = to_address(presale) if presale else None
        if not self.state.is_live_presale(address):
            raise UnknownModule(metadata={"presale": presale})
        return address

    def _when_not_paused(self) -> None:
        if self.state.paused:
            raise DAOPaused()

    @transactional
    def propose_transfer(self, sender: str, token: str, recipient: str, amount: int) -> int:
        """Propose releasing ``amount`` of ``token`` (zero address for ETH) from the treasury."""
        self._when_not_paused()
        if amount <= 0:
            raise ZeroAmount(field="amount", value=amount)
        if not recipient or is_zero_address(recipient):
            raise ZeroRecipient(field="recipient")

        data = TransferData(token=to_address(token), recipient=to_address(recipient), amount=amount)
        proposal_id = self._create_proposal(sender, ProposalKind.TRANSFER, data)
        self.emit(
            "TransferProposalCreated",
            proposal_id=proposal_id,
            token=data.token,
            recipient=data.recipient,
            amount=amount,
        )
        return proposal_id

    @transactional
    def propose_upgrade(
        self,
        sender: str,
        new_version: str,
        contract_type: Union[UpgradeableContract, str] = UpgradeableContract.DAO,
    ) -> int:
        """Propose repointing the ``contract_type`` proxies at ``new_version``."""
        self._when_not_paused()
        contract_type = UpgradeableContract.parse(contract_type)
        registry = self.env.contract_at(self.state.registry)
        if registry.resolve_version(new_version).get(contract_type) is None:
            raise InvalidVersion(
                f"Version {new_version} has no {contract_type.value} implementation",
                metadata={"version": new_version, "contract_type": contract_type.value},
            )

        data = UpgradeData(contract_type=contract_type, new_version=new_version)
        proposal_id = self._create_proposal(sender, ProposalKind.UPGRADE, data)
        self.emit(
            "UpgradeProposalCreated",
            proposal_id=proposal_id,
            contract_type=contract_type.value,
            new_version=new_version,
        )
        return proposal_id

    @transactional
    def propose_presale(self, sender: str, amount: int, initial_price: int) -> int:
        """Propose funding a bonding-curve presale of ``amount`` tokens from the treasury."""
        self._when_not_paused()
        if amount <= 0:
            raise ZeroAmount(field="amount", value=amount)
        if initial_price <= 0:
            raise ZeroInitialPrice(field="initial_price", value=initial_price)

        data = PresaleData(amount=amount, initial_price=initial_price)
        proposal_id = self._create_proposal(sender, ProposalKind.PRESALE, data)
        self.emit("PresaleProposalCreated", proposal_id=proposal_id, amount=amount, initial_price=initial_price)
        return proposal_id

    @transactional
    def propose_presale_pause(self, sender: str, presale: str, pause: bool) -> int:
        self._when_not_paused()
        data = PresalePauseData(presale=self._require_live_presale(presale), pause=bool(pause))
        proposal_id = self._create_proposal(sender, ProposalKind.PRESALE_PAUSE, data)
        self.emit("PresalePauseProposalCreated", proposal_id=proposal_id, presale=data.presale, pause=data.pause)
        return proposal_id

    @transactional
    def propose_presale_withdraw(self, sender: str, presale: str) -> int:
        self._when_not_paused()
        data = PresaleWithdrawData(presale=self._require_live_presale(presale))
        proposal_id = self._create_proposal(sender, ProposalKind.PRESALE_WITHDRAW, data)
        self.emit("PresaleWithdrawProposalCreated", proposal_id=proposal_id, presale=data.presale)
        return proposal_id

    @transactional
    def propose_pause(self, sender: str) -> int:
        if self.state.paused:
            raise AlreadyPaused()
        proposal_id = self._create_proposal(sender, ProposalKind.PAUSE, None)
        self.emit("PauseProposalCreated", proposal_id=proposal_id)
        return proposal_id

    @transactional
    def propose_unpause(self, sender: str) -> int:
        if not self.state.paused:
            raise NotPaused()
        proposal_id = self._create_proposal(sender, ProposalKind.UNPAUSE, None)
        self.emit("UnpauseProposalCreated", proposal_id=proposal_id)
        return proposal_id

    # Voting

    @transactional
    def vote(self, sender: str, proposal_id: int, support: bool) -> int:
        """Cast ``sender``'s current voting power for or against a proposal."""
        proposal = self.state.get_proposal(proposal_id)
        if self.now >= proposal.deadline:
            raise VotingClosed(proposal_id=proposal_id)

        voter = to_address(sender)
        if (proposal_id, voter) in self.state.voters:
            raise AlreadyVoted(proposal_id=proposal_id, metadata={"voter": voter})

        weight = self.env.contract_at(self.state.staking).get_voting_power(voter)
        if weight == 0:
            raise InsufficientVotingPower(proposal_id=proposal_id, metadata={"voter": voter})

        if support:
            proposal.for_votes += weight
        else:
            proposal.against_votes += weight
        self.state.voters.add((proposal_id, voter))
        self.state.votes[(proposal_id, voter)] = weight

        self.emit("Voted", proposal_id=proposal_id, voter=voter, support=bool(support), weight=weight)
        logger.debug("%s voted %s on proposal %d with %d", voter, "for" if support else "against", proposal_id, weight)
        return weight

    # Execution

    @transactional
    def execute(self, sender: str, proposal_id: int) -> ExecutionResult:
        """Tally a closed proposal and apply its effect."""
        proposal = self.state.get_proposal(proposal_id)
        if self.now < proposal.deadline:
            raise VotingOngoing(proposal_id=proposal_id, metadata={"deadline": proposal.deadline, "now": self.now})
        if proposal.executed:
            raise AlreadyExecuted(proposal_id=proposal_id)

        total_staked = self.env.contract_at(self.state.staking).total_staked()
        quorum = self.state.config.quorum_for(total_staked)
        if proposal.total_votes < quorum:
            raise QuorumNotReached(
                proposal_id=proposal_id,
                metadata={"votes": proposal.total_votes, "quorum": quorum, "total_staked": total_staked},
            )
        if proposal.for_votes <= proposal.against_votes:
            raise ProposalRejected(
                proposal_id=proposal_id,
                metadata={"for_votes": proposal.for_votes, "against_votes": proposal.against_votes},
            )

        result = ExecutionEngine(self).execute(proposal)

        proposal.executed = True
        proposal.executed_at = self.now
        self.state.executed_proposals += 1
        self.emit("ProposalExecuted", proposal_id=proposal_id, kind=proposal.kind.value, executor=to_address(sender))
        logger.info("proposal %d (%s) executed", proposal_id, proposal.kind.value)
        return result
