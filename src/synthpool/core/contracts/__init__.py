"""
Token contracts held by the ledger.
"""

from .erc20 import ERC20Token, SyntheticToken, TokenEvent

__all__ = [
    "ERC20Token",
    "SyntheticToken",
    "TokenEvent",
]
