"""
Logs subcommand for streaming console output.

Implements 'logs' command: prints console API calls and uncaught exceptions
from the selected page until the process is interrupted.
"""

import argparse
import asyncio
import logging
import signal
from typing import List, Optional

from ..collectors.console import ConsoleCollector
from .common import criteria_from_args, session_from_args

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_stop_signals(stop: asyncio.Event) -> List[signal.Signals]:
    """
    Make SIGINT/SIGTERM set the stop event instead of raising.

    Returns:
        Signals that were installed; event loops without signal support
        (Windows) install none and Ctrl+C raises KeyboardInterrupt instead.
    """
    loop = asyncio.get_running_loop()
    installed = []
    for sig in STOP_SIGNALS:
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            logger.debug(f"Signal handler for {sig.name} not supported")
            continue
        installed.append(sig)
    return installed


def remove_stop_signals(installed: List[signal.Signals]) -> None:
    loop = asyncio.get_running_loop()
    for sig in installed:
        loop.remove_signal_handler(sig)


async def stream_until_stopped(
    conn, stop: asyncio.Event, duration: Optional[float] = None
) -> None:
    """
    Print console events until stop is set.

    stop is the cancellation channel: it is set by SIGINT/SIGTERM, or after
    duration seconds when one is given. Nothing else ends the stream.
    """
    loop = asyncio.get_running_loop()
    timer = loop.call_later(duration, stop.set) if duration else None

    try:
        async with ConsoleCollector(conn):
            await stop.wait()
    finally:
        if timer is not None:
            timer.cancel()


async def logs_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'logs' command (async implementation).

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 once stopped by a signal or --duration)
    """
    stop = asyncio.Event()

    async def stream(conn, target):
        print(f"Streaming logs for: {target.title or target.id}")
        print("Press Ctrl+C to stop.", flush=True)

        installed = install_stop_signals(stop)
        try:
            await stream_until_stopped(conn, stop, args.duration)
        finally:
            remove_stop_signals(installed)

    await session_from_args(args).run(criteria_from_args(args), stream)
    return 0


def logs_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for logs_handler_async."""
    return asyncio.run(logs_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'logs' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    logs_parser = subparsers.add_parser(
        "logs",
        parents=[parent],
        help="Stream console logs until interrupted",
        description="Print console.* calls and uncaught exceptions from a page",
        epilog="""
Examples:
  # Stream until Ctrl+C
  cdp-tool logs

  # Stream from the tab titled "Dashboard" for 60 seconds
  cdp-tool logs --title-contains Dashboard --duration 60
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    logs_parser.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds (default: run until interrupted)",
    )

    logs_parser.set_defaults(func=logs_handler)
