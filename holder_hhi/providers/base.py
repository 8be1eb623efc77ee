"""Provider base class with per-call audit recording."""

import logging
import time
from abc import ABC, abstractmethod

from ..core.models import AuditEntry
from ..core.types import DataSource

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for holder data providers.

    Every upstream call is recorded as an AuditEntry. The trail belongs to the
    instance, so one provider should serve one analysis at a time.
    """

    # Subclasses must define their data source
    SOURCE: DataSource = DataSource.UNKNOWN

    def __init__(self) -> None:
        self._audit_entries: list[AuditEntry] = []

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    def _record_call(
        self,
        action: str,
        endpoint: str | None,
        start_time: float,
        error_message: str | None = None,
        notes: str | None = None,
    ) -> AuditEntry:
        """
        Record one upstream call.

        Args:
            action: What the call did, e.g. "fetch_page"
            endpoint: Label for the call; must not contain credentials
            start_time: ``time.time()`` taken before the call
            error_message: Set when the call failed
            notes: Free-form detail

        Returns:
            The recorded entry
        """
        entry = AuditEntry(
            source=self.SOURCE,
            action=action,
            endpoint=endpoint,
            success=error_message is None,
            error_message=error_message,
            duration_ms=self._elapsed_ms(start_time),
            notes=notes,
        )
        self._audit_entries.append(entry)
        if error_message:
            logger.debug(f"[{self.SOURCE.value}] {action} failed: {error_message}")
        return entry

    def get_audit_trail(self) -> list[AuditEntry]:
        """Return all audit entries recorded by this provider."""
        return self._audit_entries.copy()

    def clear_audit_trail(self) -> None:
        self._audit_entries.clear()

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured for live queries."""
        pass
