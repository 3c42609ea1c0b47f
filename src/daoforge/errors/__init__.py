"""daoforge error handling.

Exception hierarchy shared by every component of the platform.
"""

from .exceptions import (
    AlreadyExecuted,
    AlreadyInitialized,
    AlreadyPaused,
    AlreadyVoted,
    AuthorizationError,
    ConfigurationError,
    DAOForgeError,
    DAOPaused,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    GovernanceError,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientETHBalance,
    InsufficientStake,
    InsufficientVotingPower,
    InvalidVersion,
    NoVersionsRegistered,
    NotEnoughTokens,
    NotPaused,
    OnlyDAO,
    PresaleError,
    PresaleIsPaused,
    ProposalNotFound,
    ProposalRejected,
    QuorumNotReached,
    RegistryError,
    SlippageTooHigh,
    StakingError,
    TokenError,
    TransactionExpired,
    Unauthorized,
    UnknownModule,
    ValidationError,
    VersionExists,
    VotingClosed,
    VotingOngoing,
    ZeroAmount,
    ZeroETHSent,
    ZeroInitialPrice,
    ZeroRecipient,
    ZeroTokens,
)

__all__ = [
    # Base
    "DAOForgeError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    # Categories
    "AuthorizationError",
    "ConfigurationError",
    "GovernanceError",
    "PresaleError",
    "RegistryError",
    "StakingError",
    "TokenError",
    "ValidationError",
    # Kinds
    "AlreadyExecuted",
    "AlreadyInitialized",
    "AlreadyPaused",
    "AlreadyVoted",
    "DAOPaused",
    "InsufficientAllowance",
    "InsufficientBalance",
    "InsufficientETHBalance",
    "InsufficientStake",
    "InsufficientVotingPower",
    "InvalidVersion",
    "NoVersionsRegistered",
    "NotEnoughTokens",
    "NotPaused",
    "OnlyDAO",
    "PresaleIsPaused",
    "ProposalNotFound",
    "ProposalRejected",
    "QuorumNotReached",
    "SlippageTooHigh",
    "TransactionExpired",
    "Unauthorized",
    "UnknownModule",
    "VersionExists",
    "VotingClosed",
    "VotingOngoing",
    "ZeroAmount",
    "ZeroETHSent",
    "ZeroInitialPrice",
    "ZeroRecipient",
    "ZeroTokens",
]
