"""
Screenshot subcommand.

Implements 'screenshot' command via Page.captureScreenshot. Existing files are
never overwritten: a numbered sibling name is chosen instead.
"""

import argparse
import asyncio
import base64
from pathlib import Path

from ..exceptions import CDPError
from .common import criteria_from_args, session_from_args

MAX_SCREENSHOT_SUFFIX = 9999


def next_screenshot_path(out_path: str) -> Path:
    """
    Return an absolute path that does not exist yet.

    "shot.png" is used if free, then "shot-001.png", "shot-002.png", ...
    A missing extension defaults to ".png" for the numbered names.

    Raises:
        CDPError: If every candidate up to shot-9999 is taken
    """
    path = Path(out_path).expanduser().resolve()
    if not path.exists():
        return path

    suffix = path.suffix or ".png"
    for i in range(1, MAX_SCREENSHOT_SUFFIX + 1):
        candidate = path.with_name(f"{path.stem}-{i:03d}{suffix}")
        if not candidate.exists():
            return candidate

    raise CDPError(f"Could not find free screenshot name near {path}")


async def screenshot_handler_async(args: argparse.Namespace) -> int:
    async def capture(conn, target):
        return await conn.call(
            "Page.captureScreenshot", {"format": "png", "fromSurface": True}
        )

    response = await session_from_args(args).run(criteria_from_args(args), capture)

    path = next_screenshot_path(args.path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(base64.b64decode(response["data"]))

    print(f"Saved screenshot: {path}")
    return 0


def screenshot_handler(args: argparse.Namespace) -> int:
    """Synchronous wrapper for screenshot_handler_async."""
    return asyncio.run(screenshot_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'screenshot' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    screenshot_parser = subparsers.add_parser(
        "screenshot",
        parents=[parent],
        help="Save a PNG screenshot of the selected page",
        description="Capture the visible page via Page.captureScreenshot",
        epilog="""
Examples:
  # Saves shot.png, or shot-001.png if shot.png exists
  cdp-tool screenshot shot.png

  # Parent directories are created
  cdp-tool screenshot out/screens/home.png --url-contains localhost
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    screenshot_parser.add_argument("path", help="Output PNG path")

    screenshot_parser.set_defaults(func=screenshot_handler)
