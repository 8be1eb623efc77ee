"""Core module - data models, types, configuration and exceptions."""

from .models import (
    HolderRecord,
    AggregatedHolders,
    TopHolder,
    HHIResult,
    HolderSnapshot,
    AuditEntry,
    DataQualityFlag,
    HolderConcentrationAnalysis,
)
from .types import (
    ConcentrationLevel,
    DataSource,
    PaginationMode,
    StopReason,
)
from .exceptions import (
    HolderHHIError,
    DataSourceError,
    RateLimitError,
    ComputationError,
    ConfigurationError,
)
from .exclusions import DEFAULT_EXCLUDED_ADDRESSES, load_excluded_addresses

__all__ = [
    # Models
    "HolderRecord",
    "AggregatedHolders",
    "TopHolder",
    "HHIResult",
    "HolderSnapshot",
    "AuditEntry",
    "DataQualityFlag",
    "HolderConcentrationAnalysis",
    # Types
    "ConcentrationLevel",
    "DataSource",
    "PaginationMode",
    "StopReason",
    # Exceptions
    "HolderHHIError",
    "DataSourceError",
    "RateLimitError",
    "ComputationError",
    "ConfigurationError",
    # Exclusions
    "DEFAULT_EXCLUDED_ADDRESSES",
    "load_excluded_addresses",
]
