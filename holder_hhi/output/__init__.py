"""Output formatting module."""

from .formatters import OutputFormatter, JSONFormatter, CSVFormatter, TableFormatter
from .audit_trail import AuditTrailFormatter

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "CSVFormatter",
    "TableFormatter",
    "AuditTrailFormatter",
]
