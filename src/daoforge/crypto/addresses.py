"""
Account and contract address helpers.

Addresses are EIP-55 checksummed 20-byte hex strings. Contract addresses
are derived deterministically from the deployer and its deployment nonce.
"""

import logging
from typing import Any

from web3 import Web3

from ..errors.exceptions import ValidationError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Address used as ``asset`` in transfers to denote the native currency.
NATIVE_ASSET = ZERO_ADDRESS


def to_address(value: Any) -> str:
    """Normalise ``value`` to a checksummed address."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValidationError(f"Invalid address: {value!r}", field="address", value=value)
    return Web3.to_checksum_address(value)


def is_zero_address(value: str) -> bool:
    """Check whether ``value`` is the zero address (or empty)."""
    return not value or value.lower() == ZERO_ADDRESS


def account_address(label: str) -> str:
    """Derive a stable externally-owned account address from a label."""
    digest = Web3.keccak(text=f"account:{label}")
    return Web3.to_checksum_address(digest[-20:])


def contract_address(deployer: str, nonce: int) -> str:
    """Derive the address of the ``nonce``-th contract deployed by ``deployer``."""
    digest = Web3.solidity_keccak(["address", "uint256"], [to_address(deployer), nonce])
    return Web3.to_checksum_address(digest[-20:])


def ether(amount: Any) -> int:
    """Convert a decimal ether amount (``"0.001"``, ``1``) to wei."""
    return int(Web3.to_wei(amount, "ether"))
