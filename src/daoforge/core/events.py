"""
Contract event log.

Every event emitted by a contract is appended to a single hash-chained
log owned by the environment, so the full history can be queried and its
integrity verified afterwards.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from ..crypto.hashing import SHA256Hasher


@dataclass
class ContractEvent:
    """A single event emitted by a contract."""

    event_id: int
    name: str
    emitter: str
    args: Dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0
    previous_event_hash: Optional[str] = None
    event_hash: Optional[str] = None

    def __post_init__(self):
        """Calculate event hash after initialization."""
        if self.event_hash is None:
            self.event_hash = self.calculate_hash()

    def calculate_hash(self) -> str:
        """Calculate hash of this event, chained to the previous one."""
        return SHA256Hasher.chain(
            self.previous_event_hash,
            {
                "event_id": self.event_id,
                "name": self.name,
                "emitter": self.emitter,
                "args": self.args,
                "timestamp": self.timestamp,
            },
        ).to_hex()

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_id": self.event_id,
            "name": self.name,
            "emitter": self.emitter,
            "args": dict(self.args),
            "timestamp": self.timestamp,
            "previous_event_hash": self.previous_event_hash,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only, hash-chained list of contract events."""

    def __init__(self):
        self._events: List[ContractEvent] = []

    def append(self, emitter: str, name: str, args: Dict[str, Any], timestamp: int) -> ContractEvent:
        """Append a new event and return it."""
        previous_hash = self._events[-1].event_hash if self._events else None
        event = ContractEvent(
            event_id=len(self._events),
            name=name,
            emitter=emitter,
            args=dict(args),
            timestamp=timestamp,
            previous_event_hash=previous_hash,
        )
        self._events.append(event)
        logger.debug("event %s from %s: %s", name, emitter, args)
        return event

    def events(self, name: Optional[str] = None, emitter: Optional[str] = None) -> List[ContractEvent]:
        """Return events filtered by name and/or emitter, oldest first."""
        return [
            event
            for event in self._events
            if (name is None or event.name == name)
            and (emitter is None or event.emitter == emitter)
        ]

    def last(self, name: str, emitter: Optional[str] = None) -> Optional[ContractEvent]:
        """Return the most recent matching event, if any."""
        matches = self.events(name=name, emitter=emitter)
        return matches[-1] if matches else None

    def truncate(self, length: int) -> None:
        """Drop every event after the first ``length`` (used on rollback)."""
        del self._events[length:]

    def verify_integrity(self) -> bool:
        """Check that every event hash and back-link is intact."""
        previous_hash = None
        for event in self._events:
            if event.previous_event_hash != previous_hash:
                return False
            if event.calculate_hash() != event.event_hash:
                return False
            previous_hash = event.event_hash
        return True

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[ContractEvent]:
        return iter(self._events)
