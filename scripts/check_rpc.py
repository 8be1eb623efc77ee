#!/usr/bin/env python3
"""Check the Helius connection before running a full analysis.

Usage:
    python scripts/check_rpc.py
    python scripts/check_rpc.py --mint <MINT> --env-file .env
"""

import argparse
import sys
from pathlib import Path

from holder_hhi.core.config import reload_config
from holder_hhi.core.exceptions import HolderHHIError
from holder_hhi.providers.holders.solana_rpc import SolanaHolderProvider

# JUP, a mint with plenty of holders
DEFAULT_MINT = "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN"


def check_config(env_file: Path | None):
    """Check configuration loading."""
    print("\n" + "=" * 60)
    print("CONFIGURATION CHECK")
    print("=" * 60)

    config = reload_config(env_file)

    print(f"\n  RPC URL:        {config.helius_rpc_url}")
    print(f"  API key:        {'YES' if config.has_helius() else 'NO'}")
    print(f"  Page size:      {config.page_size}")
    print(f"  Timeout:        {config.request_timeout}s")
    print(f"  Exclusions:     {config.exclusions_file or 'defaults'}")

    return config


def check_first_page(config, mint: str, page_size: int) -> bool:
    """Fetch a single small page for a mint."""
    print("\n" + "=" * 60)
    print("HELIUS getProgramAccounts CHECK")
    print("=" * 60)

    if not config.has_helius():
        print("  [SKIP] HELIUS_API_KEY not set")
        return False

    provider = SolanaHolderProvider(config=config, page_size=page_size)
    try:
        accounts = provider.fetch_page(mint, 0)
        holders = provider.decode_page(accounts)
    except HolderHHIError as e:
        print(f"  [ERROR] {e.message}")
        return False

    entry = provider.get_audit_trail()[-1]
    print(f"  [OK] {len(accounts)} accounts on page 0 ({entry.duration_ms}ms)")
    print(f"  [OK] {len(holders)} holders after filtering")
    for holder in holders[:3]:
        print(f"       {holder.owner}  {holder.amount}")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Check Helius RPC access")
    parser.add_argument("--mint", default=DEFAULT_MINT, help="Mint to probe")
    parser.add_argument("--page-size", type=int, default=5, help="Accounts to request")
    parser.add_argument("--env-file", type=Path, default=None, help="Path to .env file")
    args = parser.parse_args()

    try:
        config = check_config(args.env_file)
    except HolderHHIError as e:
        print(f"  [ERROR] {e.message}")
        return 1

    ok = check_first_page(config, args.mint, args.page_size)

    print("\n" + "=" * 60)
    print("RESULT: " + ("OK" if ok else "FAILED"))
    print("=" * 60)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
