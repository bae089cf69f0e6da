"""
Open subcommand for page navigation.

Implements 'open' command via Page.navigate.
"""

import argparse
import asyncio

from ..page_scripts import SETTLE_EXPRESSION
from .common import criteria_from_args, session_from_args


async def open_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'open' command (async implementation).

    Navigates the selected page, then waits briefly so the navigation has
    started before the connection closes.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    async def navigate(conn, target):
        await conn.call("Page.navigate", {"url": args.url})
        await conn.call(
            "Runtime.evaluate",
            {"expression": SETTLE_EXPRESSION, "awaitPromise": True},
        )

    await session_from_args(args).run(criteria_from_args(args), navigate)
    print(f"Navigated to {args.url}")
    return 0


def open_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for open_handler_async."""
    return asyncio.run(open_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'open' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    open_parser = subparsers.add_parser(
        "open",
        parents=[parent],
        help="Navigate the selected page to a URL",
        description="Navigate the selected page via Page.navigate",
        epilog="""
Examples:
  # Navigate the first page
  cdp-tool open https://example.com

  # Navigate a specific tab
  cdp-tool open https://example.com --target <target-id>
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    open_parser.add_argument("url", help="URL to navigate to")

    open_parser.set_defaults(func=open_handler)
