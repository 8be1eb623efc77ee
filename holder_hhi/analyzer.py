"""Main analyzer for the holder concentration pipeline.

Coordinates the holder provider, the aggregator and the HHI engine to
produce a HolderConcentrationAnalysis from a token mint.
"""

import logging

import httpx

from . import __version__
from .calculator.aggregator import HolderAggregator
from .calculator.hhi import HHIEngine
from .core.config import APIConfig, get_config
from .core.exceptions import HolderHHIError
from .core.exclusions import DEFAULT_EXCLUDED_ADDRESSES, load_excluded_addresses
from .core.models import (
    AuditEntry,
    DataQualityFlag,
    HHIResult,
    HolderConcentrationAnalysis,
)
from .core.types import PaginationMode, StopReason
from .providers.holders.solana_rpc import SolanaHolderProvider

logger = logging.getLogger(__name__)


class HolderConcentrationAnalyzer:
    """Runs fetch, aggregation and HHI computation for a token."""

    def __init__(
        self,
        config: APIConfig | None = None,
        excluded_addresses: frozenset[str] | None = None,
        page_size: int | None = None,
        pagination_mode: PaginationMode = PaginationMode.FILTERED,
        strict_decoding: bool = False,
        max_pages: int | None = None,
        merge_by_owner: bool = False,
        transport: httpx.BaseTransport | None = None,
        provider: SolanaHolderProvider | None = None,
    ):
        """
        Initialize the analyzer with its provider and calculators.

        Args:
            config: Connection settings (global config if not provided)
            excluded_addresses: Owners outside circulating supply; shared by
                the provider and the aggregator
            page_size: Accounts requested per page
            pagination_mode: Which page count ends the fetch loop
            strict_decoding: Fail on malformed accounts instead of truncating
            max_pages: Optional cap on pages fetched
            merge_by_owner: Combine token accounts that share an owner
            transport: Optional httpx transport (used by tests)
            provider: Pre-built provider; overrides the fetch options above
        """
        self.config = config or get_config()

        if excluded_addresses is not None:
            self.excluded_addresses = frozenset(excluded_addresses)
        elif self.config.exclusions_file:
            self.excluded_addresses = load_excluded_addresses(self.config.exclusions_file)
        else:
            self.excluded_addresses = DEFAULT_EXCLUDED_ADDRESSES

        self.provider = provider or SolanaHolderProvider(
            config=self.config,
            page_size=page_size,
            excluded_addresses=self.excluded_addresses,
            pagination_mode=pagination_mode,
            strict_decoding=strict_decoding,
            max_pages=max_pages,
            transport=transport,
        )
        self.aggregator = HolderAggregator(
            excluded_addresses=self.excluded_addresses,
            merge_by_owner=merge_by_owner,
        )
        self.engine = HHIEngine()

        self._audit_entries: list[AuditEntry] = []
        self._quality_flags: list[DataQualityFlag] = []

    def _add_quality_flag(
        self,
        field: str,
        issue: str,
        severity: str = "warning",
        suggestion: str | None = None,
    ) -> None:
        """Add a data quality flag."""
        self._quality_flags.append(
            DataQualityFlag(field=field, issue=issue, severity=severity, suggestion=suggestion)
        )

    def _collect_provider_audits(self) -> None:
        """Collect audit entries from the provider."""
        self._audit_entries.extend(self.provider.get_audit_trail())
        self.provider.clear_audit_trail()

    def analyze(self, token_id: str) -> HolderConcentrationAnalysis:
        """
        Perform a complete holder concentration analysis.

        Args:
            token_id: Token mint address

        Returns:
            HolderConcentrationAnalysis with the HHI result and audit trail

        Raises:
            ComputationError: If aggregation or the HHI computation fails
        """
        logger.info(f"Starting holder analysis for: {token_id}")

        # Reset audit trail
        self._audit_entries = []
        self._quality_flags = []
        self.provider.clear_audit_trail()

        # Step 1: Fetch holders
        logger.info("Step 1: Fetching token holders...")
        try:
            snapshot = self.provider.fetch_all_holders(token_id)
        finally:
            self._collect_provider_audits()

        logger.info(
            f"Fetched {len(snapshot.holders)} holder records from "
            f"{snapshot.pages_fetched} page(s) ({snapshot.stop_reason.value})"
        )

        if not snapshot.is_complete:
            if snapshot.stop_reason == StopReason.MAX_PAGES:
                issue = f"Holder fetch stopped at the page limit after {snapshot.pages_fetched} page(s)"
            else:
                issue = (
                    f"Holder fetch stopped after {snapshot.pages_fetched} page(s): "
                    f"{snapshot.error_message or 'unknown error'}"
                )
            self._add_quality_flag(
                "holders",
                issue,
                severity="error",
                suggestion="Result covers a partial snapshot; rerun to get the full holder set",
            )
        elif snapshot.may_be_underfetched:
            self._add_quality_flag(
                "holders",
                "Last page was full before filtering; later pages may have been skipped",
                severity="warning",
                suggestion="Rerun with raw pagination to count pages before filtering",
            )

        # Step 2: Aggregate
        logger.info("Step 2: Aggregating holder balances...")
        aggregated = self.aggregator.aggregate(snapshot.holders)

        # Step 3: Compute HHI
        logger.info("Step 3: Calculating HHI...")
        result = self.engine.compute(aggregated, is_complete=snapshot.is_complete)

        if result.is_empty:
            self._add_quality_flag(
                "holders",
                "No active holders found for this mint",
                severity="info",
            )

        analysis = HolderConcentrationAnalysis(
            token_id=token_id,
            result=result,
            pages_fetched=snapshot.pages_fetched,
            raw_accounts_seen=snapshot.raw_accounts_seen,
            stop_reason=snapshot.stop_reason,
            error_message=snapshot.error_message,
            audit_trail=self._audit_entries,
            quality_flags=self._quality_flags,
            tool_version=__version__,
        )

        logger.info(
            f"Analysis complete for {token_id}: HHI={result.hhi} ({result.concentration_level})"
        )
        return analysis

    def calculate_hhi(self, token_id: str) -> HHIResult:
        """Return only the HHI result for a token."""
        return self.analyze(token_id).result

    def analyze_batch(self, token_ids: list[str]) -> list[HolderConcentrationAnalysis]:
        """
        Analyze multiple tokens one after another.

        Tokens whose computation fails are logged and skipped.

        Args:
            token_ids: Token mint addresses

        Returns:
            List of analyses for the tokens that succeeded
        """
        results = []
        for token_id in token_ids:
            try:
                results.append(self.analyze(token_id))
            except HolderHHIError as e:
                logger.error(f"Failed to analyze {token_id}: {e}")

        return results
