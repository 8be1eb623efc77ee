"""Addresses whose balances are not part of circulating supply.

The default set covers the Solana system program (used as a burn target) and
the incinerator. Other networks or tokens can supply their own list through a
YAML file::

    excluded_addresses:
      - "11111111111111111111111111111111"
      - 1nc1nerator11111111111111111111111111111111
"""

import logging
from pathlib import Path

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

BURN_ADDRESS = "11111111111111111111111111111111"
INCINERATOR_ADDRESS = "1nc1nerator11111111111111111111111111111111"

DEFAULT_EXCLUDED_ADDRESSES: frozenset[str] = frozenset(
    {
        BURN_ADDRESS,
        INCINERATOR_ADDRESS,
    }
)


def load_excluded_addresses(
    path: Path | str,
    include_defaults: bool = True,
) -> frozenset[str]:
    """
    Load excluded addresses from a YAML file.

    Args:
        path: YAML file with an ``excluded_addresses`` list
        include_defaults: Also keep the burn and incinerator addresses

    Returns:
        Immutable set of addresses

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    config_path = Path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError("exclusions_file", f"file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError("exclusions_file", f"invalid YAML in {config_path}: {e}")

    if not isinstance(config, dict):
        raise ConfigurationError("exclusions_file", "expected a mapping at top level")

    addresses = config.get("excluded_addresses") or []
    if not isinstance(addresses, list) or not all(
        isinstance(a, (str, int)) and not isinstance(a, bool) for a in addresses
    ):
        raise ConfigurationError(
            "exclusions_file", "'excluded_addresses' must be a list of strings"
        )

    # Unquoted all-digit addresses come back from YAML as ints
    loaded = {str(a).strip() for a in addresses if str(a).strip()}
    if include_defaults:
        loaded |= DEFAULT_EXCLUDED_ADDRESSES

    logger.info(f"Loaded {len(loaded)} excluded addresses from {config_path}")
    return frozenset(loaded)
