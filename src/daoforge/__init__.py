"""
daoforge: modular, upgradeable DAOs.

A factory deploys per-DAO proxy clusters (governance, token, treasury,
staking, optional bonding-curve presales) whose implementations are
versioned in a central registry. Everything runs inside an in-process
:class:`~daoforge.core.Environment` providing time, native balances,
events and atomic transactions.
"""

from .core import Clock, Contract, Environment, EventLog
from .crypto import NATIVE_ASSET, ZERO_ADDRESS, ether
from .errors import DAOForgeError
from .factory import DAOCluster, DAOFactory, FactoryConfig
from .governance import (
    ContractProxy,
    Governance,
    GovernanceConfig,
    ImplementationRegistry,
    ProposalKind,
    ProposalState,
    Treasury,
    UpgradeableContract,
)
from .presale import BondingCurveMarket, PresaleConfig
from .staking import StakingConfig, VotingPowerLedger
from .token import GovernanceToken

__version__ = "1.0.0"

__all__ = [
    "BondingCurveMarket",
    "Clock",
    "Contract",
    "ContractProxy",
    "DAOCluster",
    "DAOFactory",
    "DAOForgeError",
    "Environment",
    "EventLog",
    "FactoryConfig",
    "Governance",
    "GovernanceConfig",
    "GovernanceToken",
    "ImplementationRegistry",
    "NATIVE_ASSET",
    "PresaleConfig",
    "ProposalKind",
    "ProposalState",
    "StakingConfig",
    "Treasury",
    "UpgradeableContract",
    "VotingPowerLedger",
    "ZERO_ADDRESS",
    "ether",
]
