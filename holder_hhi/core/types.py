"""Type definitions and enums for the holder concentration tool."""

import re
from enum import Enum


class ConcentrationLevel(str, Enum):
    """Qualitative label attached to an HHI value."""

    NO_HOLDERS = "No active holders"
    DECENTRALIZED = "Decentralized"
    MODERATE = "Moderate concentration"
    HIGH = "High concentration"
    EXTREME = "Extreme concentration (risk of manipulation)"


class DataSource(str, Enum):
    """Data source identifiers."""

    HELIUS = "helius"
    UNKNOWN = "unknown"


class PaginationMode(str, Enum):
    """How the holder fetch loop decides that a page was the last one."""

    FILTERED = "filtered"   # Post-filter record count below page size
    RAW = "raw"             # Raw account count below page size


class StopReason(str, Enum):
    """Why the holder fetch loop stopped."""

    EMPTY_PAGE = "empty_page"
    SHORT_PAGE = "short_page"
    ERROR = "error"
    MAX_PAGES = "max_pages"


# Type aliases for common patterns
Percentage = float   # 0-100 scale
RawAmount = str      # Token amount in smallest unit, decimal string
Address = str        # Base58 account address

# Unsigned decimal integer, ASCII digits only
AMOUNT_PATTERN = re.compile(r"[0-9]+")
