"""
List subcommand for target discovery.

Implements 'list' command to show the page targets Chrome exposes.
"""

import argparse
import json

from .common import session_from_args


def list_handler(args: argparse.Namespace) -> int:
    """
    Handle 'list' command.

    Selection flags are accepted but ignored: every page target is listed.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    targets = session_from_args(args).list_targets()

    if args.format == "json":
        print(json.dumps([target.to_dict() for target in targets], indent=2))
        return 0

    if not targets:
        print("No page targets.")
        return 0

    for target in targets:
        print(target.id)
        print(f"  title: {target.title or '-'}")
        print(f"  url: {target.url or '-'}")
        print()

    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'list' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    list_parser = subparsers.add_parser(
        "list",
        parents=[parent],
        help="List page targets",
        description="List debuggable pages reported by Chrome's /json/list endpoint",
        epilog="""
Examples:
  # List pages on the default port
  cdp-tool list

  # Another Chrome instance
  cdp-tool list --host 10.0.0.5 --port 9333

  # JSON output
  cdp-tool list --format json
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    list_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )

    list_parser.set_defaults(func=list_handler)
