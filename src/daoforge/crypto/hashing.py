"""
SHA-256 digests for the event log.

Digests are computed with the ``cryptography`` package over a canonical
JSON encoding, so two events with equal fields always hash the same.
"""

import logging

logger = logging.getLogger(__name__)
import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from cryptography.hazmat.primitives import hashes

DIGEST_SIZE = 32


@dataclass(frozen=True)
class Hash:
    """A 32-byte SHA-256 digest."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != DIGEST_SIZE:
            raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(self.value)}")

    def to_hex(self) -> str:
        return self.value.hex()

    def __str__(self) -> str:
        return self.to_hex()


class SHA256Hasher:
    """SHA-256 helpers."""

    @staticmethod
    def hash(data: Union[bytes, str]) -> Hash:
        """Digest raw bytes (strings are UTF-8 encoded first)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        digest = hashes.Hash(hashes.SHA256())
        digest.update(data)
        return Hash(digest.finalize())

    @staticmethod
    def canonical_json(payload: Any) -> str:
        """Sorted-key JSON; values JSON cannot encode are rendered with ``str``."""
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)

    @classmethod
    def hash_json(cls, payload: Any) -> Hash:
        """Digest the canonical JSON encoding of ``payload``."""
        return cls.hash(cls.canonical_json(payload))

    @classmethod
    def chain(cls, previous: Optional[str], payload: Any) -> Hash:
        """Digest ``payload`` linked to the hex digest of its predecessor."""
        return cls.hash_json({"previous": previous, "payload": payload})
