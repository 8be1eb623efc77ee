"""CLI entry point for the Token Holder Concentration (HHI) Tool.

Usage:
    holder-hhi analyze <MINT>
    holder-hhi analyze <MINT> --output json --save results/mint.json
    holder-hhi analyze <MINT> --pagination raw --max-pages 50
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ..analyzer import HolderConcentrationAnalyzer
from ..core.config import get_config, reload_config
from ..core.exceptions import HolderHHIError
from ..core.exclusions import load_excluded_addresses
from ..core.types import PaginationMode
from ..output.audit_trail import AuditTrailFormatter
from ..output.formatters import CSVFormatter, JSONFormatter, TableFormatter

# Initialize app
app = typer.Typer(
    name="holder-hhi",
    help="Token holder concentration (HHI) tool",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_analyzer(
    env_file: Optional[Path],
    exclusions: Optional[Path],
    page_size: Optional[int],
    max_pages: Optional[int],
    pagination: str,
    strict: bool,
    merge_owners: bool,
) -> HolderConcentrationAnalyzer:
    """Create an analyzer from CLI options, raising on bad configuration."""
    config = reload_config(env_file) if env_file else get_config()
    config.require_helius()

    try:
        mode = PaginationMode(pagination.lower())
    except ValueError:
        console.print(f"[red]Invalid pagination mode: {pagination}[/]")
        console.print("Valid modes: filtered, raw")
        raise typer.Exit(1)

    excluded = load_excluded_addresses(exclusions) if exclusions else None

    return HolderConcentrationAnalyzer(
        config=config,
        excluded_addresses=excluded,
        page_size=page_size,
        pagination_mode=mode,
        strict_decoding=strict,
        max_pages=max_pages,
        merge_by_owner=merge_owners,
    )


@app.command()
def analyze(
    mint: str = typer.Argument(..., help="Token mint address"),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json, csv",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    page_size: Optional[int] = typer.Option(
        None,
        "--page-size",
        min=1,
        help="Accounts per RPC page (default from HOLDER_PAGE_SIZE or 1000)",
    ),
    max_pages: Optional[int] = typer.Option(
        None,
        "--max-pages",
        min=1,
        help="Stop after this many pages (snapshot is marked partial)",
    ),
    pagination: str = typer.Option(
        "filtered",
        "--pagination",
        help="Last-page detection: filtered (post-filter count) or raw (pre-filter count)",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail on malformed accounts instead of returning a partial snapshot",
    ),
    merge_owners: bool = typer.Option(
        False,
        "--merge-owners",
        help="Combine token accounts that share an owner",
    ),
    exclusions: Optional[Path] = typer.Option(
        None,
        "--exclusions",
        help="YAML file with additional excluded addresses",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Path to .env file with HELIUS_API_KEY",
    ),
    audit: bool = typer.Option(
        False,
        "--audit", "-a",
        help="Include detailed audit trail in output",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Compute the HHI of a token's holders.

    Examples:
        holder-hhi analyze EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v
        holder-hhi analyze <MINT> --output json --save results/mint.json
    """
    setup_logging(verbose)

    output_lower = output.lower()
    if output_lower == "json":
        formatter = JSONFormatter(include_audit=audit)
    elif output_lower == "csv":
        formatter = CSVFormatter()
    elif output_lower == "table":
        formatter = TableFormatter()
    else:
        console.print(f"[red]Invalid output format: {output}[/]")
        raise typer.Exit(1)

    try:
        analyzer = _build_analyzer(
            env_file, exclusions, page_size, max_pages, pagination, strict, merge_owners
        )
        err_console.print(f"[bold]Analyzing {mint}...[/]")
        analysis = analyzer.analyze(mint)
    except HolderHHIError as e:
        console.print(f"[red]Error: {escape(e.message)}[/]")
        raise typer.Exit(1)

    formatted = formatter.format(analysis)

    print(formatted)

    # Show audit trail if requested
    audit_formatter = AuditTrailFormatter()
    if audit and output_lower != "json":
        print()
        print(audit_formatter.format_summary(analysis))

    # Save if requested
    if save:
        save.parent.mkdir(parents=True, exist_ok=True)

        if output_lower == "json":
            save_path = save.with_suffix(".json")
        elif output_lower == "csv":
            save_path = save.with_suffix(".csv")
        else:
            save_path = save.with_suffix(".txt")

        formatter.format_to_file(analysis, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")

        if audit:
            audit_path = save_path.with_name(f"{save_path.stem}_audit.txt")
            audit_formatter.format_to_file(analysis, str(audit_path))
            console.print(f"[green]Audit trail saved to {audit_path}[/]")


@app.command()
def batch(
    tokens_file: Path = typer.Argument(..., help="File with token mints (one per line)"),
    output_dir: Path = typer.Option(
        Path("results"),
        "--output-dir", "-o",
        help="Output directory for results",
    ),
    output_format: str = typer.Option(
        "json",
        "--format", "-f",
        help="Output format: json, csv",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Path to .env file with HELIUS_API_KEY",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Analyze multiple mints from a file.

    The tokens file should have one mint per line; lines starting with #
    are ignored. Results are saved to the output directory.
    """
    setup_logging(verbose)

    if not tokens_file.exists():
        console.print(f"[red]File not found: {tokens_file}[/]")
        raise typer.Exit(1)

    with open(tokens_file, "r", encoding="utf-8") as f:
        mints = [line.strip() for line in f if line.strip() and not line.startswith("#")]

    if not mints:
        console.print("[red]No tokens found in file[/]")
        raise typer.Exit(1)

    try:
        analyzer = _build_analyzer(env_file, None, None, None, "filtered", False, False)
    except HolderHHIError as e:
        console.print(f"[red]Error: {escape(e.message)}[/]")
        raise typer.Exit(1)

    console.print(f"[bold]Processing {len(mints)} tokens...[/]")
    output_dir.mkdir(parents=True, exist_ok=True)

    if output_format == "csv":
        formatter = CSVFormatter()
        ext = ".csv"
    else:
        formatter = JSONFormatter()
        ext = ".json"

    # Failed mints are logged and skipped by the analyzer
    analyses = analyzer.analyze_batch(mints)

    for analysis in analyses:
        output_path = output_dir / f"{analysis.token_id}{ext}"
        formatter.format_to_file(analysis, str(output_path))

        status = "" if analysis.is_complete else " [yellow](partial)[/]"
        console.print(f"  [green]Saved: {output_path}[/]{status}")

    console.print(f"\n[bold]Complete: {len(analyses)}/{len(mints)} successful[/]")


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"Holder HHI Tool v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
