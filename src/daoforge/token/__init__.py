"""Governance token."""

from .erc20 import DECIMALS, GovernanceToken, TokenState

__all__ = ["DECIMALS", "GovernanceToken", "TokenState"]
