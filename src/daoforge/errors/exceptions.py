"""Exception hierarchy for daoforge.

Every failure in the platform is surfaced as a distinct subclass of
:class:`DAOForgeError`. Leaf classes carry a stable ``error_code`` equal to
their class name so callers can tell e.g. a ``QuorumNotReached`` apart from a
``ProposalRejected`` without parsing messages.
"""

import logging
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    GOVERNANCE = "governance"
    STAKING = "staking"
    PRESALE = "presale"
    REGISTRY = "registry"
    TOKEN = "token"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    contract: Optional[str] = None
    operation: Optional[str] = None
    sender: Optional[str] = None
    block_time: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "contract": self.contract,
            "operation": self.operation,
            "sender": self.sender,
            "block_time": self.block_time,
            "metadata": self.metadata,
        }


class DAOForgeError(Exception):
    """Base exception for all daoforge errors."""

    default_message = "Operation failed"
    default_category = ErrorCategory.SYSTEM
    default_severity = ErrorSeverity.MEDIUM
    default_retryable = False

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        severity: Optional[ErrorSeverity] = None,
        category: Optional[ErrorCategory] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        retryable: Optional[bool] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.severity = severity or self.default_severity
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        self.retryable = self.default_retryable if retryable is None else retryable
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "retryable": self.retryable,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code and self.error_code != self.__class__.__name__:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.retryable:
            parts.append("Retryable: Yes")

        return " | ".join(parts)


class ValidationError(DAOForgeError):
    """An argument failed validation."""

    default_message = "Validation failed"
    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class ConfigurationError(DAOForgeError):
    """Invalid configuration values."""

    default_message = "Invalid configuration"
    default_category = ErrorCategory.CONFIGURATION

    def __init__(self, message: Optional[str] = None, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.config_key = config_key


class AuthorizationError(DAOForgeError):
    """Caller is not allowed to perform the operation."""

    default_message = "Unauthorized"
    default_category = ErrorCategory.AUTHORIZATION
    default_severity = ErrorSeverity.HIGH


class GovernanceError(DAOForgeError):
    """Governance state machine error."""

    default_message = "Governance error"
    default_category = ErrorCategory.GOVERNANCE

    def __init__(self, message: Optional[str] = None, proposal_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.proposal_id = proposal_id


class StakingError(DAOForgeError):
    """Staking ledger error."""

    default_message = "Staking error"
    default_category = ErrorCategory.STAKING


class PresaleError(DAOForgeError):
    """Bonding-curve presale error."""

    default_message = "Presale error"
    default_category = ErrorCategory.PRESALE


class RegistryError(DAOForgeError):
    """Implementation registry error."""

    default_message = "Registry error"
    default_category = ErrorCategory.REGISTRY


class TokenError(DAOForgeError):
    """Token ledger error."""

    default_message = "Token error"
    default_category = ErrorCategory.TOKEN


# Validation

class ZeroAmount(ValidationError):
    default_message = "Zero amount"


class ZeroTokens(ValidationError):
    default_message = "Zero tokens"


class ZeroETHSent(ValidationError):
    default_message = "Zero ETH sent"


class ZeroRecipient(ValidationError):
    default_message = "Zero recipient"


class ZeroInitialPrice(ValidationError):
    default_message = "Zero initial price"


class AlreadyInitialized(DAOForgeError):
    """Contract storage was initialized twice."""

    default_message = "Already initialized"
    default_severity = ErrorSeverity.HIGH


# Authorization

class OnlyDAO(AuthorizationError):
    """Administrative entry point called by someone other than the owning DAO."""

    default_message = "Only DAO"


class Unauthorized(AuthorizationError):
    default_message = "Unauthorized account"


# Staking

class InsufficientStake(StakingError):
    default_message = "Insufficient stake"


# Governance

class ProposalNotFound(GovernanceError):
    default_message = "Proposal not found"


class InsufficientVotingPower(GovernanceError):
    default_message = "Insufficient voting power"


class VotingOngoing(GovernanceError):
    default_message = "Voting ongoing"


class VotingClosed(GovernanceError):
    default_message = "Voting closed"


class AlreadyVoted(GovernanceError):
    default_message = "Already voted"


class AlreadyExecuted(GovernanceError):
    default_message = "Already executed"


class QuorumNotReached(GovernanceError):
    """Participation below quorum; may succeed later once more stake votes."""

    default_message = "Quorum not reached"
    default_retryable = True


class ProposalRejected(GovernanceError):
    default_message = "Proposal rejected"


class DAOPaused(GovernanceError):
    default_message = "DAO: paused"


class AlreadyPaused(GovernanceError):
    default_message = "Already paused"


class NotPaused(GovernanceError):
    default_message = "Not paused"


class UnknownModule(GovernanceError):
    default_message = "Not a presale contract"


# Presale

class TransactionExpired(PresaleError):
    default_message = "Transaction expired"


class SlippageTooHigh(PresaleError):
    default_message = "Slippage too high"


class NotEnoughTokens(PresaleError):
    default_message = "Not enough tokens"


class InsufficientETHBalance(PresaleError):
    default_message = "Insufficient ETH balance"


class PresaleIsPaused(PresaleError):
    default_message = "Presale is paused"


# Registry

class InvalidVersion(RegistryError):
    default_message = "Invalid version"


class NoVersionsRegistered(RegistryError):
    default_message = "No versions registered"


class VersionExists(RegistryError):
    default_message = "Version exists"


# Token / treasury balances

class InsufficientBalance(TokenError):
    default_message = "Insufficient balance"


class InsufficientAllowance(TokenError):
    default_message = "Insufficient allowance"
