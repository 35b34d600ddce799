# main.py

"""Entry point for the pricescout command-line price comparison."""

import argparse
import asyncio
import logging
import sys

from pricescout.config.logging_config import setup_logging
from pricescout.config.settings import Settings
from pricescout.models.search import PriceRange

logger = logging.getLogger("pricescout.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pricescout",
        description="Compare product prices across search engines "
        "and e-commerce storefronts.",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Product to search for.",
    )
    parser.add_argument(
        "-c",
        "--country",
        default="US",
        help="2-letter country code (default: US).",
    )
    parser.add_argument(
        "-n",
        "--max-results",
        type=int,
        default=Settings.DEFAULT_MAX_RESULTS,
        dest="max_results",
        help=(
            f"Maximum results, {Settings.MIN_RESULTS_LIMIT}-"
            f"{Settings.MAX_RESULTS_LIMIT} "
            f"(default: {Settings.DEFAULT_MAX_RESULTS})."
        ),
    )
    parser.add_argument(
        "--min-price",
        type=float,
        default=None,
        dest="min_price",
        help="Lower price bound.",
    )
    parser.add_argument(
        "--max-price",
        type=float,
        default=None,
        dest="max_price",
        help="Upper price bound.",
    )
    parser.add_argument(
        "--direct",
        action="store_true",
        default=False,
        help="Scrape configured storefronts directly, skipping the "
        "search engine.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--countries",
        action="store_true",
        default=False,
        help="List supported countries and their sources.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on all sources.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Also echo INFO logs to stderr.",
    )
    return parser


def _price_range(args: argparse.Namespace) -> PriceRange | None:
    if args.min_price is None and args.max_price is None:
        return None
    return PriceRange(min=args.min_price, max=args.max_price)


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless search and exit."""
    from pricescout.cli.runner import cli_search

    exit_code = asyncio.run(
        cli_search(
            query=args.query,
            country=args.country,
            max_results=args.max_results,
            price_range=_price_range(args),
            output_format=args.output_format,
            direct=args.direct,
        )
    )
    sys.exit(exit_code)


def _run_list_countries(args: argparse.Namespace) -> None:
    from pricescout.cli.runner import run_list_countries

    sys.exit(asyncio.run(run_list_countries(direct=args.direct)))


def _run_health_check() -> None:
    """Run source connectivity health check."""
    from pricescout.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the health check, country listing or a search."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose)
    logger.info("pricescout starting, log file: %s", log_file)

    if args.health:
        _run_health_check()
    elif args.countries:
        _run_list_countries(args)
    elif args.query is None:
        parser.print_help()
        sys.exit(2)
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
