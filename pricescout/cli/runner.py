# pricescout/cli/runner.py

"""Headless CLI runner built on the async orchestrator."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from pricescout.ai.gemini import GeminiAnalyst
from pricescout.config.settings import Settings
from pricescout.errors import PriceComparisonError
from pricescout.models.search import (
    AggregationResult,
    PriceRange,
    SearchRequest,
)
from pricescout.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger("pricescout.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _print_table(result: AggregationResult) -> None:
    """Render the ranked products and insights to stdout."""
    table = Table(
        title=f"Prices for '{result.query}' in {result.country}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Source", style="magenta")
    table.add_column("Link", overflow="fold", style="dim")

    for idx, p in enumerate(result.products, 1):
        table.add_row(
            str(idx),
            p.name[:60],
            f"{p.price} {p.currency}",
            f"{p.rating:.1f}" if p.rating is not None else "—",
            p.source,
            p.link,
        )

    console = Console()
    console.print(table)
    insights = result.insights
    if insights is not None:
        console.print(
            f"[bold]Range:[/bold] {insights.min_price:,.2f} – "
            f"{insights.max_price:,.2f}  "
            f"[bold]Average:[/bold] {insights.average_price:,.2f}  "
            f"[bold]Confidence:[/bold] {result.confidence}"
        )
        for line in insights.recommendations:
            console.print(f"[green]• {line}[/green]")
        for line in insights.warnings:
            console.print(f"[yellow]! {line}[/yellow]")


def _build_analyst() -> GeminiAnalyst | None:
    """Gemini analyst when an API key is configured, else ``None``."""
    if not Settings.GEMINI_API_KEY:
        _err.print(
            "[dim]GEMINI_API_KEY not set, ranking by price only[/dim]"
        )
        return None
    return GeminiAnalyst()


async def cli_search(
    query: str,
    country: str,
    max_results: int,
    price_range: PriceRange | None,
    output_format: str,
    direct: bool = False,
) -> int:
    """Run a headless search and return an exit code (0=ok, 1=fail)."""
    analyst = _build_analyst()
    orchestrator = SearchOrchestrator(
        analyst=analyst,
        use_search_engine=False if direct else None,
    )
    _err.print(
        f"[bold]Searching:[/bold] {query}  "
        f"[dim]country={country} mode={orchestrator.search_mode}[/dim]"
    )

    try:
        result = await orchestrator.search(
            SearchRequest(
                product_name=query,
                country=country,
                max_results=max_results,
                price_range=price_range,
            )
        )
    except PriceComparisonError as exc:
        logger.warning("Search failed: %s (%s)", exc, exc.code)
        _err.print(f"[red]{exc.code}: {exc}[/red]")
        return 1
    finally:
        await orchestrator.close()
        if analyst is not None:
            await analyst.close()

    for error_msg in result.errors:
        _err.print(f"[yellow]Note: {error_msg}[/yellow]")
    _err.print(
        f"[green]✓ {result.total_results} products from "
        f"{len(result.sources)} sources in {result.search_time_ms}ms[/green]"
    )

    if output_format == "table":
        _print_table(result)
    else:
        json.dump(
            result.to_dict(),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


async def run_list_countries(direct: bool = False) -> int:
    """Print supported countries and the sources each would use."""
    orchestrator = SearchOrchestrator(
        use_search_engine=False if direct else None
    )
    try:
        countries = orchestrator.get_supported_countries()
    finally:
        await orchestrator.close()

    table = Table(
        title=f"Supported Countries ({orchestrator.search_mode})",
        title_style="bold cyan",
    )
    table.add_column("Code", style="bold", width=6)
    table.add_column("Country")
    table.add_column("Sources", style="dim")
    for c in countries:
        table.add_row(c["code"], c["name"], ", ".join(c["sources"]))
    Console().print(table)
    return 0


async def run_health_check() -> int:
    """Run connectivity health check on all sources."""
    from pricescout.services.health_checker import HealthChecker

    _err.print("[bold]Running source health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Source Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Source", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
        table.add_row(r.source_id, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
