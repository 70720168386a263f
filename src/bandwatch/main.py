"""
Bandwatch - command line entry point.

Polls the configured symbols, classifies each price against its volatility
bands and serves the results over HTTP.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv

from .config.logging import get_logger, setup_logging
from .config.settings import Settings, get_settings
from .services.scanner import ScanOrchestrator, ScanResult
from .webapi.app import build_orchestrator


def initialize_application() -> Settings:
    """Load environment, configure logging and return settings."""
    load_dotenv()
    settings = get_settings()
    setup_logging(settings)
    return settings


def format_result_line(result: ScanResult) -> str:
    """One table row for terminal output."""
    if result.has_error:
        return f"{result.symbol:<8} {'ERROR':<12} {result.fetch_error}"

    decimals = result.asset_class.price_decimals
    bands = result.bands
    band_text = (
        f"[{bands.lower:.{decimals}f} | {bands.middle:.{decimals}f} | "
        f"{bands.upper:.{decimals}f}]"
        if bands
        else "-"
    )
    return (
        f"{result.symbol:<8} {result.status.value:<12} "
        f"{result.current_price:>12.{decimals}f} "
        f"{result.proximity_percent:>6.0f}% {band_text}"
    )


async def run_once(orchestrator: ScanOrchestrator) -> List[str]:
    """Run a single cycle and return the formatted table rows."""
    try:
        await orchestrator.run_cycle()
    finally:
        await orchestrator.adapter.aclose()
    return [format_result_line(r) for r in orchestrator.view().sorted_results()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bandwatch", description="Volatility band market scanner"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="run one scan cycle, print the results and exit",
    )
    parser.add_argument("--host", help="API bind address")
    parser.add_argument("--port", type=int, help="API port")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    settings = initialize_application()
    logger = get_logger(__name__)

    if args.once:
        logger.info("Running single scan cycle")
        for line in asyncio.run(run_once(build_orchestrator(settings))):
            print(line)
        return 0

    host = args.host or settings.endpoint_host
    port = args.port or settings.endpoint_port
    logger.info(
        "Starting Bandwatch",
        host=host,
        port=port,
        interval_seconds=settings.poll_interval_seconds,
    )

    try:
        uvicorn.run(
            "bandwatch.webapi.app:create_app",
            factory=True,
            host=host,
            port=port,
            log_level=settings.api_log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    return 0


if __name__ == "__main__":
    sys.exit(main())
