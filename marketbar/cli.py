"""Command-line entry point.

    marketbar [config.toml] [--continuous | --ticker] [--stock | --crypto] [--simulate]

Writes one JSON object per line to stdout ({"text", "tooltip", "class"}).
Logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from .app import MarketBar
from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ConfigError
from .models import Kind, StatusLine
from .stream import continuous_lines, ticker_lines

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketbar",
        description="Stock and crypto price status line with rotation and scrolling ticker modes.",
    )
    parser.add_argument("config", nargs="?", default=DEFAULT_CONFIG_PATH, help="path to the TOML config file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--continuous", action="store_true", help="emit a line every rotation interval")
    mode.add_argument("--ticker", action="store_true", help="emit a scrolling ticker window every second")
    kind = parser.add_mutually_exclusive_group()
    kind.add_argument("--stock", dest="kind", action="store_const", const=Kind.EQUITY, help="equities only")
    kind.add_argument("--crypto", dest="kind", action="store_const", const=Kind.CRYPTO, help="crypto only")
    parser.add_argument("--simulate", action="store_true", help="use simulated prices instead of live APIs")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="stderr log level (default: WARNING)",
    )
    return parser


def _emit(line: StatusLine) -> None:
    # One write per line, flushed, so a reader never sees a partial object
    sys.stdout.write(line.to_json() + "\n")
    sys.stdout.flush()


def _install_stop_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Platforms without loop signal support fall back to KeyboardInterrupt
            pass


async def run(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    ticker_config = config.require_ticker() if args.ticker else None
    bar = MarketBar.from_config(config, kind=args.kind, simulate=args.simulate)

    stop = asyncio.Event()
    _install_stop_handlers(stop)
    try:
        if ticker_config is not None:
            async for line in ticker_lines(bar.ticker_buffer(), stop, clock=bar.clock):
                _emit(line)
        elif args.continuous:
            async for line in continuous_lines(bar, stop):
                _emit(line)
        else:
            _emit(await bar.status_line())
    finally:
        await bar.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # API keys may live in .env.local next to the config
    load_dotenv(".env.local")

    try:
        asyncio.run(run(args))
    except ConfigError as e:
        logger.error("Error: %s", e)
        return 1
    except KeyboardInterrupt:
        pass
    return 0
