"""Token holder providers."""

from .solana_rpc import SolanaHolderProvider, SPL_TOKEN_PROGRAM_ID

__all__ = ["SolanaHolderProvider", "SPL_TOKEN_PROGRAM_ID"]
