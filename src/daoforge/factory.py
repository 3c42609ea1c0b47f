"""
DAO factory.

Deploys a complete DAO cluster (governance, token, treasury, staking) as
proxies over the implementations registered for the latest version, wires
the modules together and hands every proxy over to the new DAO.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .core.environment import Contract, transactional
from .crypto.addresses import to_address
from .errors.exceptions import AlreadyInitialized, ConfigurationError, InvalidVersion, ValidationError
from .governance.core import GovernanceConfig
from .governance.upgrades import deploy_proxy
from .presale.tiers import PresaleConfig
from .staking.ledger import StakingConfig

logger = logging.getLogger(__name__)

FACTORY_VERSION = "1.0.0"
MAX_TOKEN_SUPPLY = 999_999_999_999 * 10**18


@dataclass
class FactoryConfig:
    """Limits applied to new DAOs."""

    max_token_supply: int = MAX_TOKEN_SUPPLY
    max_symbol_length: int = 6
    creator_allocation: int = 10**18
    factory_version: str = FACTORY_VERSION

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if self.max_token_supply <= 0:
            raise ConfigurationError("Max token supply must be positive", config_key="max_token_supply")

        if self.max_symbol_length <= 0:
            raise ConfigurationError("Max symbol length must be positive", config_key="max_symbol_length")

        if not 0 <= self.creator_allocation <= self.max_token_supply:
            raise ConfigurationError("Creator allocation out of range", config_key="creator_allocation")

        if not self.factory_version:
            raise ConfigurationError("Factory version must be set", config_key="factory_version")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FactoryConfig":
        """Create config from dictionary."""
        return cls(
            max_token_supply=int(data.get("max_token_supply", MAX_TOKEN_SUPPLY)),
            max_symbol_length=int(data.get("max_symbol_length", 6)),
            creator_allocation=int(data.get("creator_allocation", 10**18)),
            factory_version=str(data.get("factory_version", FACTORY_VERSION)),
        )


@dataclass(frozen=True)
class DAOCluster:
    """Addresses of a deployed DAO's proxies."""

    dao: str
    token: str
    treasury: str
    staking: str
    version: str
    creator: str


@dataclass
class FactoryState:
    owner: str
    registry: str
    config: FactoryConfig
    clusters: List[DAOCluster] = field(default_factory=list)


class DAOFactory(Contract):
    """Creates DAO clusters from the registry's latest version."""

    def initialize(self, owner: str, registry: str, config: Optional[FactoryConfig] = None) -> None:
        if self.state is not None:
            raise AlreadyInitialized()
        self.state = FactoryState(
            owner=to_address(owner),
            registry=to_address(registry),
            config=config or FactoryConfig(),
        )

    def owner(self) -> str:
        return self.state.owner

    def registry(self) -> str:
        return self.state.registry

    def get_factory_version(self) -> str:
        return self.state.config.factory_version

    def get_dao_count(self) -> int:
        return len(self.state.clusters)

    def get_dao(self, index: int) -> DAOCluster:
        return self.state.clusters[index]

    def daos(self) -> List[DAOCluster]:
        return list(self.state.clusters)

    def _validate_request(self, version: str, token_symbol: str, initial_supply: int) -> None:
        config = self.state.config
        registry = self.env.contract_at(self.state.registry)
        if version != registry.latest_version():
            raise InvalidVersion("Only latest version is active", metadata={"version": version})
        if len(token_symbol) > config.max_symbol_length:
            raise ValidationError(
                f"Symbol must be less than {config.max_symbol_length + 1} chars",
                field="token_symbol",
                value=token_symbol,
            )
        if initial_supply > config.max_token_supply:
            raise ValidationError(
                "Token amount exceeds maximum",
                field="initial_supply",
                value=initial_supply,
                expected=f"<= {config.max_token_supply}",
            )
        if initial_supply < config.creator_allocation:
            raise ValidationError(
                "Token amount below creator allocation",
                field="initial_supply",
                value=initial_supply,
                expected=f">= {config.creator_allocation}",
            )

    @transactional
    def create_dao(
        self,
        sender: str,
        version: str,
        dao_name: str,
        token_name: str,
        token_symbol: str,
        initial_supply: int,
        governance_config: Optional[GovernanceConfig] = None,
        staking_config: Optional[StakingConfig] = None,
        presale_config: Optional[PresaleConfig] = None,
    ) -> DAOCluster:
        """Deploy and wire a new DAO cluster owned by itself."""
        self._validate_request(version, token_symbol, initial_supply)
        creator = to_address(sender)
        implementations = self.env.contract_at(self.state.registry).resolve_version(version)

        dao = deploy_proxy(self.env, self.address, implementations.dao, self.address)
        token = deploy_proxy(self.env, self.address, implementations.token, self.address)
        treasury = deploy_proxy(self.env, self.address, implementations.treasury, self.address)
        staking = deploy_proxy(self.env, self.address, implementations.staking, self.address)

        treasury.initialize(dao=dao.address)
        staking.initialize(token=token.address, owner=dao.address, config=staking_config)
        token.initialize(
            name=token_name,
            symbol=token_symbol,
            initial_supply=initial_supply,
            creator=creator,
            treasury=treasury.address,
            owner=dao.address,
            staking_contract=staking.address,
            creator_allocation=self.state.config.creator_allocation,
        )
        dao.initialize(
            name=dao_name,
            registry=self.state.registry,
            token=token.address,
            treasury=treasury.address,
            staking=staking.address,
            version=version,
            config=governance_config,
            presale_config=presale_config,
        )

        for proxy in (dao, token, treasury, staking):
            proxy.change_admin(self.address, dao.address)

        cluster = DAOCluster(
            dao=dao.address,
            token=token.address,
            treasury=treasury.address,
            staking=staking.address,
            version=version,
            creator=creator,
        )
        self.state.clusters.append(cluster)
        self.emit(
            "DAOCreated",
            dao=dao.address,
            token=token.address,
            treasury=treasury.address,
            staking=staking.address,
            creator=creator,
            version=version,
        )
        logger.info("created DAO %s (%s) at version %s", dao_name, dao.address, version)
        return cluster
