"""
Upgradeable contracts: proxies and the versioned implementation registry.

A :class:`ContractProxy` owns a contract's storage and forwards every
attribute it does not define itself to its current implementation class,
bound to the proxy. Swapping the implementation is the only way to change
behaviour, and only the proxy's admin (the owning DAO) may do it.

The :class:`ImplementationRegistry` maps version strings to the set of
implementation classes making up a DAO cluster. Versions are append-only.
"""

import copy
import inspect
import logging
import types
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, Union

from ..core.environment import Contract, Environment, transactional
from ..crypto.addresses import to_address
from ..errors.exceptions import (
    AlreadyInitialized,
    InvalidVersion,
    NoVersionsRegistered,
    Unauthorized,
    ValidationError,
    VersionExists,
)
from .proposal import UpgradeableContract

logger = logging.getLogger(__name__)

RESERVED_NAMES = frozenset({"implementation", "proxy_admin", "upgrade_to", "change_admin"})


def _check_implementation(implementation: Any) -> None:
    if not (inspect.isclass(implementation) and issubclass(implementation, Contract)):
        raise ValidationError("Implementation must be a contract class", field="implementation", value=implementation)
    clashes = sorted(name for name in RESERVED_NAMES if hasattr(implementation, name))
    if clashes:
        raise ValidationError(
            f"Implementation {implementation.__name__} shadows proxy attributes: {', '.join(clashes)}",
            field="implementation",
        )


class ContractProxy(Contract):
    """Storage-holding proxy dispatching to a swappable implementation."""

    def __init__(self, env: Environment, address: str, implementation: Type[Contract], proxy_admin: str):
        super().__init__(env, address)
        _check_implementation(implementation)
        self.implementation = implementation
        self.proxy_admin = to_address(proxy_admin)
        self.upgrade_count = 0
        self.last_upgraded: Optional[int] = None

    def __getattr__(self, name: str) -> Any:
        # Only reached for names the proxy itself lacks.
        if name.startswith("__"):
            raise AttributeError(name)
        implementation = self.__dict__.get("implementation")
        if implementation is None:
            raise AttributeError(name)
        try:
            attr = inspect.getattr_static(implementation, name)
        except AttributeError:
            raise AttributeError(f"{implementation.__name__} has no attribute {name!r}") from None

        if isinstance(attr, staticmethod):
            return attr.__func__
        if isinstance(attr, classmethod):
            return types.MethodType(attr.__func__, implementation)
        if isinstance(attr, property):
            return attr.fget(self)
        if inspect.isfunction(attr):
            return types.MethodType(attr, self)
        return attr

    def __repr__(self) -> str:
        return f"ContractProxy({self.implementation.__name__} at {self.address})"

    def snapshot(self) -> Any:
        return (self.implementation, self.proxy_admin, self.upgrade_count, self.last_upgraded, copy.deepcopy(self.state))

    def restore(self, snapshot: Any) -> None:
        self.implementation, self.proxy_admin, self.upgrade_count, self.last_upgraded, self.state = snapshot

    @transactional
    def upgrade_to(self, sender: str, implementation: Type[Contract]) -> None:
        """Repoint the proxy at ``implementation``; admin only."""
        if to_address(sender) != self.proxy_admin:
            raise Unauthorized(metadata={"sender": sender, "proxy": self.address})
        _check_implementation(implementation)

        previous = self.implementation
        self.implementation = implementation
        self.upgrade_count += 1
        self.last_upgraded = self.now
        self.emit("Upgraded", implementation=implementation.__name__, previous=previous.__name__)
        logger.info("proxy %s upgraded %s -> %s", self.address, previous.__name__, implementation.__name__)

    @transactional
    def change_admin(self, sender: str, new_admin: str) -> None:
        if to_address(sender) != self.proxy_admin:
            raise Unauthorized(metadata={"sender": sender, "proxy": self.address})
        previous, self.proxy_admin = self.proxy_admin, to_address(new_admin)
        self.emit("AdminChanged", previous=previous, admin=self.proxy_admin)


def deploy_proxy(env: Environment, deployer: str, implementation: Type[Contract], proxy_admin: str) -> ContractProxy:
    """Deploy an uninitialized proxy for ``implementation``."""
    return env.deploy(deployer, lambda e, address: ContractProxy(e, address, implementation, proxy_admin))


@dataclass(frozen=True)
class ImplementationSet:
    """Implementation classes registered under one version."""

    version: str
    dao: Type[Contract]
    token: Type[Contract]
    treasury: Type[Contract]
    staking: Type[Contract]
    presale: Optional[Type[Contract]] = None

    def get(self, contract_type: UpgradeableContract) -> Optional[Type[Contract]]:
        return getattr(self, contract_type.value)

    def with_module(self, contract_type: UpgradeableContract, implementation: Type[Contract]) -> "ImplementationSet":
        values = {slot.value: self.get(slot) for slot in UpgradeableContract}
        values[contract_type.value] = implementation
        return ImplementationSet(version=self.version, **values)


@dataclass
class RegistryState:
    owner: str
    versions: Dict[str, ImplementationSet] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)


class ImplementationRegistry(Contract):
    """Append-only version -> implementation-set registry."""

    def initialize(self, owner: str) -> None:
        if self.state is not None:
            raise AlreadyInitialized()
        self.state = RegistryState(owner=to_address(owner))

    def owner(self) -> str:
        return self.state.owner

    def _only_owner(self, sender: str) -> None:
        if to_address(sender) != self.state.owner:
            raise Unauthorized(metadata={"sender": sender, "registry": self.address})

    @transactional
    def register_implementation(
        self,
        sender: str,
        version: str,
        dao: Type[Contract],
        token: Type[Contract],
        treasury: Type[Contract],
        staking: Type[Contract],
        presale: Optional[Type[Contract]] = None,
    ) -> ImplementationSet:
        """Register the implementation set for a new ``version``."""
        self._only_owner(sender)
        if not version:
            raise ValidationError("Version must be non-empty", field="version", value=version)
        if version in self.state.versions:
            raise VersionExists(metadata={"version": version})

        for name, implementation in (("dao", dao), ("token", token), ("treasury", treasury), ("staking", staking)):
            if implementation is None:
                raise ValidationError(f"Missing {name} implementation", field=name)
            _check_implementation(implementation)
        if presale is not None:
            _check_implementation(presale)

        implementations = ImplementationSet(
            version=version, dao=dao, token=token, treasury=treasury, staking=staking, presale=presale
        )
        self.state.versions[version] = implementations
        self.state.order.append(version)
        self.emit("ImplementationRegistered", version=version)
        logger.info("registered implementation version %s", version)
        return implementations

    @transactional
    def register_module_implementation(
        self,
        sender: str,
        module: Union[UpgradeableContract, str],
        version: str,
        implementation: Type[Contract],
    ) -> ImplementationSet:
        """Attach or replace a single module's implementation within an existing version."""
        self._only_owner(sender)
        module = UpgradeableContract.parse(module)
        _check_implementation(implementation)
        implementations = self.resolve_version(version).with_module(module, implementation)
        self.state.versions[version] = implementations
        self.emit("ModuleImplementationRegistered", module=module.value, version=version)
        logger.info("registered %s implementation for version %s", module.value, version)
        return implementations

    def get_implementation(self, version: str) -> Optional[ImplementationSet]:
        """Implementation set for ``version``, or None when unknown."""
        return self.state.versions.get(version)

    def resolve_version(self, version: str) -> ImplementationSet:
        implementations = self.state.versions.get(version)
        if implementations is None:
            raise InvalidVersion(metadata={"version": version})
        return implementations

    def latest_version(self) -> str:
        if not self.state.order:
            raise NoVersionsRegistered()
        return self.state.order[-1]

    def versions(self) -> List[str]:
        return list(self.state.order)

    def is_registered(self, version: str) -> bool:
        return version in self.state.versions
