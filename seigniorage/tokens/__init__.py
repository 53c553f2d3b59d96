"""
Fungible tokens.

Provides:
  - Token : ERC-20 style ledger with operator-gated mint / burn_from
  - Cash / Bond / Share : constructors for the three protocol assets
"""

from .token import Bond, Cash, Share, Token

__all__ = [
    "Token",
    "Cash",
    "Bond",
    "Share",
]
