"""
DAO governance: proposals, voting, execution, treasury and upgrades.
"""

from .core import BPS_DENOMINATOR, GovernanceConfig, GovernanceState
from .dao import Governance
from .execution import ExecutionEngine, ExecutionResult
from .proposal import (
    PresaleData,
    PresalePauseData,
    PresaleWithdrawData,
    Proposal,
    ProposalKind,
    ProposalState,
    TransferData,
    UpgradeableContract,
    UpgradeData,
)
from .treasury import Treasury, TreasuryState
from .upgrades import (
    ContractProxy,
    ImplementationRegistry,
    ImplementationSet,
    RegistryState,
    deploy_proxy,
)

__all__ = [
    # Core
    "BPS_DENOMINATOR",
    "GovernanceConfig",
    "GovernanceState",
    "Governance",
    # Proposals
    "Proposal",
    "ProposalKind",
    "ProposalState",
    "TransferData",
    "UpgradeData",
    "PresaleData",
    "PresalePauseData",
    "PresaleWithdrawData",
    "UpgradeableContract",
    # Execution
    "ExecutionEngine",
    "ExecutionResult",
    # Treasury
    "Treasury",
    "TreasuryState",
    # Upgrades
    "ContractProxy",
    "ImplementationRegistry",
    "ImplementationSet",
    "RegistryState",
    "deploy_proxy",
]
