"""Pydantic data models for the holder concentration tool.

All data structures are immutable (frozen) after creation so a result can be
shared between formatters without defensive copies.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from .types import (
    AMOUNT_PATTERN,
    Address,
    ConcentrationLevel,
    DataSource,
    Percentage,
    RawAmount,
    StopReason,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HolderRecord(BaseModel):
    """One token account: owning address and raw amount (no decimal scaling)."""

    owner: Address
    amount: RawAmount

    model_config = {"frozen": True}


class AggregatedHolders(BaseModel):
    """Filtered holder set together with its exact total supply.

    Holders keep fetch order, which is the tie-break for ranking.
    """

    holders: list[HolderRecord] = Field(default_factory=list)
    total_supply: int = 0

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_total(self) -> "AggregatedHolders":
        total = 0
        for holder in self.holders:
            if not AMOUNT_PATTERN.fullmatch(holder.amount) or int(holder.amount) <= 0:
                raise ValueError(
                    f"Holder {holder.owner} has non-positive amount {holder.amount!r}"
                )
            total += int(holder.amount)
        if total != self.total_supply:
            raise ValueError(
                f"total_supply {self.total_supply} does not match holder sum {total}"
            )
        return self

    @classmethod
    def empty(cls) -> "AggregatedHolders":
        """The aggregate used when no eligible holders remain."""
        return cls(holders=[], total_supply=0)

    @property
    def is_empty(self) -> bool:
        return not self.holders or self.total_supply == 0

    @property
    def holder_count(self) -> int:
        return len(self.holders)


class TopHolder(BaseModel):
    """A ranked holder with its share of total supply."""

    account: Address
    amount: RawAmount
    percentage: Percentage

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class HHIResult(BaseModel):
    """Concentration statistics for one token.

    ``hhi`` covers every holder; ``top_holders`` is only the displayed head
    of the ranking.
    """

    hhi: int = Field(ge=0, le=10_000)
    total_supply: str
    holder_count: int = Field(ge=0)
    top_holders: list[TopHolder] = Field(default_factory=list, max_length=10)
    concentration_level: str
    is_complete: bool = True

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @classmethod
    def empty(cls, is_complete: bool = True) -> "HHIResult":
        """Sentinel returned when there are no active holders."""
        return cls(
            hhi=0,
            total_supply="0",
            holder_count=0,
            top_holders=[],
            concentration_level=ConcentrationLevel.NO_HOLDERS.value,
            is_complete=is_complete,
        )

    @property
    def is_empty(self) -> bool:
        return self.holder_count == 0

    def to_payload(self) -> dict[str, Any]:
        """Transport-neutral dict with camelCase keys."""
        return self.model_dump(by_alias=True)


class HolderSnapshot(BaseModel):
    """Holder records retrieved by one pagination run."""

    token_id: str
    holders: list[HolderRecord] = Field(default_factory=list)
    page_size: int
    pages_fetched: int = 0
    raw_accounts_seen: int = 0
    last_page_raw_count: int = 0
    is_complete: bool = True
    stop_reason: StopReason = StopReason.EMPTY_PAGE
    error_message: str | None = None

    model_config = {"frozen": True}

    @property
    def may_be_underfetched(self) -> bool:
        """True when the loop stopped on a short filtered page that was full before filtering."""
        return (
            self.stop_reason == StopReason.SHORT_PAGE
            and self.last_page_raw_count >= self.page_size
        )


class AuditEntry(BaseModel):
    """Audit trail entry for a data fetch or calculation."""

    timestamp: datetime = Field(default_factory=_utcnow)
    source: DataSource
    action: str  # "fetch_page", "aggregate", "calculate"
    endpoint: str | None = None
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class DataQualityFlag(BaseModel):
    """Flag indicating a data quality issue."""

    field: str
    issue: str
    severity: str = "warning"  # "info", "warning", "error"
    suggestion: str | None = None

    model_config = {"frozen": True}


class HolderConcentrationAnalysis(BaseModel):
    """Complete result of a holder concentration analysis."""

    token_id: str
    result: HHIResult

    # Snapshot metadata
    pages_fetched: int = 0
    raw_accounts_seen: int = 0
    stop_reason: StopReason = StopReason.EMPTY_PAGE
    error_message: str | None = None

    # Audit trail
    audit_trail: list[AuditEntry] = Field(default_factory=list)
    quality_flags: list[DataQualityFlag] = Field(default_factory=list)

    # Metadata
    analysis_timestamp: datetime = Field(default_factory=_utcnow)
    tool_version: str = "0.1.0"

    model_config = {"frozen": True}

    @property
    def is_complete(self) -> bool:
        return self.result.is_complete
