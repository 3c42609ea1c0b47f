"""
Proposal execution.

The :class:`ExecutionEngine` applies the effect of an approved proposal on
behalf of its DAO. Every effect runs inside the DAO's ``execute``
transaction, so a failing effect undoes everything, including the
``executed`` flag.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..errors.exceptions import AlreadyPaused, InvalidVersion, NotPaused, UnknownModule
from .proposal import (
    PresaleData,
    PresalePauseData,
    PresaleWithdrawData,
    Proposal,
    ProposalKind,
    TransferData,
    UpgradeableContract,
    UpgradeData,
)
from .upgrades import deploy_proxy

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of proposal execution."""

    proposal_id: int
    kind: ProposalKind
    executed_at: int
    execution_data: Dict[str, Any] = field(default_factory=dict)


class ExecutionEngine:
    """Applies proposal effects for a DAO."""

    def __init__(self, dao: Any):
        self.dao = dao
        self.env = dao.env
        self._handlers: Dict[ProposalKind, Callable[[Proposal, Any], Dict[str, Any]]] = {
            ProposalKind.TRANSFER: self._execute_transfer,
            ProposalKind.UPGRADE: self._execute_upgrade,
            ProposalKind.PRESALE: self._execute_presale,
            ProposalKind.PRESALE_PAUSE: self._execute_presale_pause,
            ProposalKind.PRESALE_WITHDRAW: self._execute_presale_withdraw,
            ProposalKind.PAUSE: self._execute_pause,
            ProposalKind.UNPAUSE: self._execute_unpause,
        }

    @property
    def state(self):
        return self.dao.state

    def execute(self, proposal: Proposal) -> ExecutionResult:
        """Apply the effect of ``proposal``."""
        handler = self._handlers[proposal.kind]
        payload = self.state.payloads.get(proposal.proposal_id)
        execution_data = handler(proposal, payload)
        return ExecutionResult(
            proposal_id=proposal.proposal_id,
            kind=proposal.kind,
            executed_at=self.env.now,
            execution_data=execution_data,
        )

    def _execute_transfer(self, proposal: Proposal, data: TransferData) -> Dict[str, Any]:
        treasury = self.env.contract_at(self.state.treasury)
        treasury.release_asset(self.dao.address, data.token, data.recipient, data.amount)
        return {"token": data.token, "recipient": data.recipient, "amount": data.amount}

    def _execute_upgrade(self, proposal: Proposal, data: UpgradeData) -> Dict[str, Any]:
        registry = self.env.contract_at(self.state.registry)
        implementation = registry.resolve_version(data.new_version).get(data.contract_type)
        if implementation is None:
            raise InvalidVersion(
                f"Version {data.new_version} has no {data.contract_type.value} implementation",
                metadata={"version": data.new_version, "contract_type": data.contract_type.value},
            )

        if data.contract_type == UpgradeableContract.PRESALE:
            targets = list(self.state.live_presales)
        else:
            targets = [self.dao.upgradeable_contracts()[data.contract_type]]

        for target in targets:
            self.env.contract_at(target).upgrade_to(self.dao.address, implementation)
            self.dao.emit(
                "ContractUpgraded",
                contract_type=data.contract_type.value,
                target=target,
                version=data.new_version,
            )

        self.state.implementation_versions[data.contract_type] = data.new_version
        logger.info("upgraded %s to version %s (%d proxies)", data.contract_type.value, data.new_version, len(targets))
        return {"contract_type": data.contract_type.value, "version": data.new_version, "targets": targets}

    def _execute_presale(self, proposal: Proposal, data: PresaleData) -> Dict[str, Any]:
        registry = self.env.contract_at(self.state.registry)
        version = registry.latest_version()
        implementation = registry.resolve_version(version).presale
        if implementation is None:
            raise InvalidVersion(
                f"Version {version} has no presale implementation",
                metadata={"version": version},
            )

        presale = deploy_proxy(self.env, self.dao.address, implementation, self.dao.address)
        presale.initialize(
            token=self.state.token,
            treasury=self.state.treasury,
            dao=self.dao.address,
            total_amount=data.amount,
            initial_price=data.initial_price,
            config=self.state.presale_config,
        )

        treasury = self.env.contract_at(self.state.treasury)
        treasury.release_asset(self.dao.address, self.state.token, presale.address, data.amount)

        self.state.presales[proposal.proposal_id] = presale.address
        self.state.live_presales.append(presale.address)
        self.state.implementation_versions.setdefault(UpgradeableContract.PRESALE, version)
        self.dao.emit(
            "PresaleCreated",
            proposal_id=proposal.proposal_id,
            presale=presale.address,
            amount=data.amount,
            initial_price=data.initial_price,
        )
        logger.info("presale %s created for %d tokens", presale.address, data.amount)
        return {"presale": presale.address, "amount": data.amount, "initial_price": data.initial_price}

    def _live_presale(self, address: str) -> Any:
        if not self.state.is_live_presale(address):
            raise UnknownModule(metadata={"presale": address})
        return self.env.contract_at(address)

    def _execute_presale_pause(self, proposal: Proposal, data: PresalePauseData) -> Dict[str, Any]:
        self._live_presale(data.presale).set_paused(self.dao.address, data.pause)
        return {"presale": data.presale, "pause": data.pause}

    def _execute_presale_withdraw(self, proposal: Proposal, data: PresaleWithdrawData) -> Dict[str, Any]:
        amount = self._live_presale(data.presale).withdraw_to_treasury(self.dao.address)
        return {"presale": data.presale, "amount": amount}

    def _execute_pause(self, proposal: Proposal, data: Optional[Any]) -> Dict[str, Any]:
        if self.state.paused:
            raise AlreadyPaused(proposal_id=proposal.proposal_id)
        self.state.paused = True
        self.dao.emit("Paused", proposal_id=proposal.proposal_id)
        logger.info("DAO %s paused", self.dao.address)
        return {"paused": True}

    def _execute_unpause(self, proposal: Proposal, data: Optional[Any]) -> Dict[str, Any]:
        if not self.state.paused:
            raise NotPaused(proposal_id=proposal.proposal_id)
        self.state.paused = False
        self.dao.emit("Unpaused", proposal_id=proposal.proposal_id)
        logger.info("DAO %s unpaused", self.dao.address)
        return {"paused": False}
