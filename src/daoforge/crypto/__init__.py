"""Hashing and address utilities."""

from .addresses import (
    NATIVE_ASSET,
    ZERO_ADDRESS,
    account_address,
    contract_address,
    ether,
    is_zero_address,
    to_address,
)
from .hashing import Hash, SHA256Hasher

__all__ = [
    "Hash",
    "SHA256Hasher",
    "NATIVE_ASSET",
    "ZERO_ADDRESS",
    "account_address",
    "contract_address",
    "ether",
    "is_zero_address",
    "to_address",
]
