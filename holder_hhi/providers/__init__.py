"""Data providers for the holder concentration tool.

This module contains providers for:
- Token holder snapshots (Helius getProgramAccounts)
"""

from .base import BaseProvider

__all__ = ["BaseProvider"]
