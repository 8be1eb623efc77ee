"""Audit trail formatter for transparency and reproducibility.

Generates audit documentation showing:
- Every RPC page call and its status
- Why pagination stopped
- Data quality issues detected
"""

import logging
from typing import Any

from ..core.models import HolderConcentrationAnalysis

logger = logging.getLogger(__name__)


class AuditTrailFormatter:
    """Formats audit trail information for transparency."""

    def format_summary(self, analysis: HolderConcentrationAnalysis) -> str:
        """
        Format a summary of the audit trail.

        Args:
            analysis: HolderConcentrationAnalysis with audit data

        Returns:
            Formatted string summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("AUDIT TRAIL SUMMARY")
        lines.append("=" * 70)
        lines.append("")

        # Analysis metadata
        lines.append(f"Analysis Timestamp: {analysis.analysis_timestamp.isoformat()}")
        lines.append(f"Tool Version: {analysis.tool_version}")
        lines.append(f"Token: {analysis.token_id}")
        lines.append("")

        # Data Sources Used
        lines.append("DATA SOURCES CONSULTED")
        lines.append("-" * 40)
        sources_summary = self._summarize_sources(analysis)
        if not sources_summary:
            lines.append("  No upstream calls recorded")
        for source, info in sources_summary.items():
            status = "OK" if info["failure_count"] == 0 else "FAILED"
            lines.append(f"  {source}: {status}")
            lines.append(f"    - Calls: {info['total_count']} ({info['success_count']} successful)")
            lines.append(f"    - Total duration: {info['duration_ms']}ms")
        lines.append("")

        # Pagination
        lines.append("PAGINATION")
        lines.append("-" * 40)
        lines.append(f"  Pages fetched: {analysis.pages_fetched}")
        lines.append(f"  Raw accounts seen: {analysis.raw_accounts_seen}")
        lines.append(f"  Stop reason: {analysis.stop_reason.value}")
        lines.append(f"  Complete snapshot: {analysis.is_complete}")
        if analysis.error_message:
            lines.append(f"  Error: {analysis.error_message}")
        lines.append("")

        # Quality Flags
        if analysis.quality_flags:
            lines.append("DATA QUALITY FLAGS")
            lines.append("-" * 40)
            for flag in analysis.quality_flags:
                lines.append(f"  [{flag.severity.upper()}] {flag.field}")
                lines.append(f"    Issue: {flag.issue}")
                if flag.suggestion:
                    lines.append(f"    Suggestion: {flag.suggestion}")
            lines.append("")

        # Detailed Audit Trail
        lines.append("DETAILED API CALLS")
        lines.append("-" * 40)
        for entry in analysis.audit_trail:
            status = "OK" if entry.success else "FAILED"
            duration = f"{entry.duration_ms}ms" if entry.duration_ms is not None else "N/A"
            lines.append(f"  [{entry.timestamp.strftime('%H:%M:%S')}] {entry.source.value} {entry.action}")
            lines.append(f"    Endpoint: {entry.endpoint or 'N/A'}")
            lines.append(f"    Status: {status}, Duration: {duration}")
            if entry.error_message:
                lines.append(f"    Error: {entry.error_message}")
            if entry.notes:
                lines.append(f"    Notes: {entry.notes}")
        lines.append("")

        lines.append("=" * 70)
        lines.append("END OF AUDIT TRAIL")
        lines.append("=" * 70)

        return "\n".join(lines)

    def _summarize_sources(self, analysis: HolderConcentrationAnalysis) -> dict[str, Any]:
        """Summarize source usage from audit trail."""
        summary: dict[str, dict[str, Any]] = {}

        for entry in analysis.audit_trail:
            source_name = entry.source.value
            if source_name not in summary:
                summary[source_name] = {
                    "total_count": 0,
                    "success_count": 0,
                    "failure_count": 0,
                    "duration_ms": 0,
                }

            summary[source_name]["total_count"] += 1
            if entry.success:
                summary[source_name]["success_count"] += 1
            else:
                summary[source_name]["failure_count"] += 1
            summary[source_name]["duration_ms"] += entry.duration_ms or 0

        return summary

    def format_to_file(self, analysis: HolderConcentrationAnalysis, filepath: str) -> None:
        """Write audit trail to file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format_summary(analysis))
