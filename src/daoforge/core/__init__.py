"""Execution environment primitives: clock, contracts, events, transactions."""

from .clock import DAY, DEFAULT_GENESIS_TIME, HOUR, MINUTE, MONTH, THREE_MONTHS, WEEK, Clock
from .environment import Contract, Environment, transactional
from .events import ContractEvent, EventLog

__all__ = [
    "Clock",
    "Contract",
    "ContractEvent",
    "Environment",
    "EventLog",
    "transactional",
    "DAY",
    "DEFAULT_GENESIS_TIME",
    "HOUR",
    "MINUTE",
    "MONTH",
    "THREE_MONTHS",
    "WEEK",
]
