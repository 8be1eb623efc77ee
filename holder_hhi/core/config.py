"""Configuration management for the RPC endpoint and fetch settings.

Loads configuration from environment variables or .env file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_RPC_URL = "https://mainnet.helius-rpc.com"
DEFAULT_PAGE_SIZE = 1000
DEFAULT_REQUEST_TIMEOUT = 30.0


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected an integer, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(name, f"must be positive, got {value}")
    return value


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(name, f"must be positive, got {value}")
    return value


@dataclass(frozen=True)
class APIConfig:
    """Connection and pagination settings for the holder fetch."""

    # Helius RPC (required for live queries)
    helius_api_key: Optional[str] = None
    helius_rpc_url: str = DEFAULT_RPC_URL

    # Pagination
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # YAML file with extra excluded (burn / program) addresses
    exclusions_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "APIConfig":
        """Load configuration from environment variables."""
        exclusions = os.getenv("HOLDER_EXCLUSIONS_FILE")
        return cls(
            helius_api_key=os.getenv("HELIUS_API_KEY") or None,
            helius_rpc_url=os.getenv("HELIUS_RPC_URL") or DEFAULT_RPC_URL,
            page_size=_read_int("HOLDER_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            request_timeout=_read_float("HOLDER_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            exclusions_file=Path(exclusions) if exclusions else None,
        )

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "APIConfig":
        """
        Load configuration from .env file and environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the project root.

        Returns:
            APIConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls.from_env()

    def has_helius(self) -> bool:
        """Check if a Helius API key is configured."""
        return bool(self.helius_api_key)

    @property
    def rpc_endpoint(self) -> str:
        """Full JSON-RPC URL including the API key query parameter."""
        base = self.helius_rpc_url.rstrip("/")
        if self.helius_api_key:
            return f"{base}/?api-key={self.helius_api_key}"
        return f"{base}/"

    def require_helius(self) -> None:
        """Raise if live queries cannot be made."""
        if not self.has_helius():
            raise ConfigurationError(
                "HELIUS_API_KEY", "not set; add it to the environment or .env file"
            )


# Global config instance (lazy loaded)
_config: Optional[APIConfig] = None


def get_config() -> APIConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = APIConfig.load()
    return _config


def reload_config(env_file: Optional[Path] = None) -> APIConfig:
    """Reload configuration from environment."""
    global _config
    _config = APIConfig.load(env_file)
    return _config
