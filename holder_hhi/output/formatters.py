"""Output formatters for holder concentration results.

Provides multiple output formats:
- JSON: Machine-readable, camelCase result payload plus snapshot metadata
- CSV: Spreadsheet-compatible, top holder focus
- Table: Human-readable CLI output
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.models import HolderConcentrationAnalysis
from ..core.types import AMOUNT_PATTERN, ConcentrationLevel

logger = logging.getLogger(__name__)

LEVEL_STYLES = {
    ConcentrationLevel.NO_HOLDERS.value: "dim",
    ConcentrationLevel.DECENTRALIZED.value: "green",
    ConcentrationLevel.MODERATE.value: "yellow",
    ConcentrationLevel.HIGH.value: "dark_orange",
    ConcentrationLevel.EXTREME.value: "bold red",
}


def _format_amount(amount: str) -> str:
    """Group digits of a raw amount string."""
    return f"{int(amount):,}" if AMOUNT_PATTERN.fullmatch(amount) else amount


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, analysis: HolderConcentrationAnalysis) -> str:
        """Format the analysis as a string."""
        pass

    @abstractmethod
    def format_to_file(self, analysis: HolderConcentrationAnalysis, filepath: str) -> None:
        """Write formatted analysis to a file."""
        pass


class JSONFormatter(OutputFormatter):
    """Formats analyses as JSON."""

    def __init__(self, indent: int = 2, include_audit: bool = False):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_audit: Include the per-page audit trail
        """
        self.indent = indent
        self.include_audit = include_audit

    def _serialize(self, obj: Any) -> Any:
        """Custom serialization for complex types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        if hasattr(obj, "value"):
            # Enum
            return obj.value
        return str(obj)

    def to_dict(self, analysis: HolderConcentrationAnalysis) -> dict[str, Any]:
        """Build the JSON document as a dict."""
        data: dict[str, Any] = {
            "token": analysis.token_id,
            "data": analysis.result.to_payload(),
            "snapshot": {
                "pagesFetched": analysis.pages_fetched,
                "rawAccountsSeen": analysis.raw_accounts_seen,
                "stopReason": analysis.stop_reason.value,
                "errorMessage": analysis.error_message,
            },
            "qualityFlags": [flag.model_dump() for flag in analysis.quality_flags],
            "analysisTimestamp": analysis.analysis_timestamp,
            "toolVersion": analysis.tool_version,
        }
        if self.include_audit:
            data["auditTrail"] = [entry.model_dump(mode="json") for entry in analysis.audit_trail]
        return data

    def format(self, analysis: HolderConcentrationAnalysis) -> str:
        """Format analysis as JSON string."""
        return json.dumps(self.to_dict(analysis), default=self._serialize, indent=self.indent)

    def format_to_file(self, analysis: HolderConcentrationAnalysis, filepath: str) -> None:
        """Write JSON to file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format(analysis))


class CSVFormatter(OutputFormatter):
    """Formats the summary and top holders as CSV."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def format(self, analysis: HolderConcentrationAnalysis) -> str:
        """Format analysis as CSV string."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter)
        result = analysis.result

        # 1. Summary Section
        writer.writerow(["# Concentration Summary"])
        writer.writerow(["Field", "Value"])
        writer.writerow(["Token", analysis.token_id])
        writer.writerow(["HHI", result.hhi])
        writer.writerow(["Concentration Level", result.concentration_level])
        writer.writerow(["Holder Count", result.holder_count])
        writer.writerow(["Total Supply", result.total_supply])
        writer.writerow(["Complete Snapshot", result.is_complete])
        writer.writerow(["Pages Fetched", analysis.pages_fetched])
        writer.writerow([])

        # 2. Top Holders Section
        writer.writerow(["# Top Holders"])
        writer.writerow(["Rank", "Account", "Amount", "Percentage"])
        for rank, holder in enumerate(result.top_holders, 1):
            writer.writerow([rank, holder.account, holder.amount, f"{holder.percentage:.4f}"])

        # 3. Data Quality Flags
        if analysis.quality_flags:
            writer.writerow([])
            writer.writerow(["# Data Quality Flags"])
            writer.writerow(["Field", "Issue", "Severity"])
            for flag in analysis.quality_flags:
                writer.writerow([flag.field, flag.issue, flag.severity])

        return output.getvalue()

    def format_to_file(self, analysis: HolderConcentrationAnalysis, filepath: str) -> None:
        """Write CSV to file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(analysis))


class TableFormatter(OutputFormatter):
    """Formats analyses as human-readable tables for CLI output."""

    def __init__(self, use_rich: bool = True, width: int = 100):
        """
        Initialize table formatter.

        Args:
            use_rich: Use rich for colored output; plain text otherwise
            width: Maximum table width
        """
        self.use_rich = use_rich
        self.width = width

    def format(self, analysis: HolderConcentrationAnalysis) -> str:
        """Format analysis as readable tables."""
        if self.use_rich:
            return self._format_rich(analysis)
        return self._format_plain(analysis)

    def _format_plain(self, analysis: HolderConcentrationAnalysis) -> str:
        """Plain text formatting without rich."""
        result = analysis.result
        lines = []
        sep = "=" * 60

        # Header
        lines.append(sep)
        lines.append("  HOLDER CONCENTRATION ANALYSIS")
        lines.append(f"  {analysis.token_id}")
        lines.append(sep)
        lines.append("")

        # Summary
        lines.append("CONCENTRATION")
        lines.append("-" * 40)
        lines.append(f"  HHI:           {result.hhi:>8}")
        lines.append(f"  Level:         {result.concentration_level}")
        lines.append(f"  Holders:       {result.holder_count:>8,}")
        lines.append(f"  Total Supply:  {_format_amount(result.total_supply)}")
        if not result.is_complete:
            lines.append("  Snapshot:      PARTIAL (pagination stopped early)")
        lines.append("")

        # Top holders
        lines.append("TOP HOLDERS")
        lines.append("-" * 40)
        if result.top_holders:
            lines.append(f"  {'#':>2}  {'Account':<44} {'%':>9}")
            lines.append("  " + "-" * 57)
            for rank, holder in enumerate(result.top_holders, 1):
                lines.append(f"  {rank:>2}  {holder.account:<44} {holder.percentage:>8.4f}%")
        else:
            lines.append("  No active holders")
        lines.append("")

        # Quality Flags
        if analysis.quality_flags:
            lines.append("DATA QUALITY FLAGS")
            lines.append("-" * 40)
            for flag in analysis.quality_flags:
                lines.append(f"  [{flag.severity.upper()}] {flag.field}: {flag.issue}")
            lines.append("")

        # Footer
        lines.append(sep)
        lines.append(f"  Analysis timestamp: {analysis.analysis_timestamp.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append(f"  Pages fetched: {analysis.pages_fetched} ({analysis.stop_reason.value})")
        lines.append(sep)

        return "\n".join(lines)

    def _format_rich(self, analysis: HolderConcentrationAnalysis) -> str:
        """Rich library formatting with colors."""
        result = analysis.result
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width, highlight=False)

        style = LEVEL_STYLES.get(result.concentration_level, "white")
        snapshot_note = "" if result.is_complete else "\n[yellow]Partial snapshot: pagination stopped early[/]"
        console.print(Panel(
            f"[bold cyan]HHI {result.hhi}[/] - [{style}]{result.concentration_level}[/]\n"
            f"[dim]Mint: {analysis.token_id}[/]{snapshot_note}",
            title="Holder Concentration",
            expand=False,
        ))

        summary_table = Table(title="Summary", show_header=False)
        summary_table.add_column("Field", style="cyan")
        summary_table.add_column("Value", style="green")
        summary_table.add_row("Holders", f"{result.holder_count:,}")
        summary_table.add_row("Total Supply", _format_amount(result.total_supply))
        summary_table.add_row("Pages Fetched", str(analysis.pages_fetched))
        console.print(summary_table)

        if result.top_holders:
            holders_table = Table(title="Top Holders")
            holders_table.add_column("#", justify="right", style="dim")
            holders_table.add_column("Account", style="cyan")
            holders_table.add_column("Amount", justify="right")
            holders_table.add_column("%", justify="right", style="green")
            for rank, holder in enumerate(result.top_holders, 1):
                holders_table.add_row(
                    str(rank),
                    holder.account,
                    _format_amount(holder.amount),
                    f"{holder.percentage:.4f}%",
                )
            console.print(holders_table)

        # Quality flags
        if analysis.quality_flags:
            console.print("\n[bold yellow]Data Quality Flags:[/]")
            for flag in analysis.quality_flags:
                icon = "i" if flag.severity == "info" else "!"
                console.print(f"  \\[{icon}] {flag.field}: {escape(flag.issue)}")

        return output.getvalue()

    def format_to_file(self, analysis: HolderConcentrationAnalysis, filepath: str) -> None:
        """Write formatted output to file."""
        # For file output, use plain format (no ANSI codes)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self._format_plain(analysis))
