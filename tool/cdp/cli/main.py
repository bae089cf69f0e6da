"""
Main CLI entry point for cdp-tool.

Provides a command-line interface with one subcommand per page operation.

Usage:
    python -m tool.cdp.cli.main <subcommand> [options]

Subcommands:
    list        - List page targets
    open        - Navigate the selected page to a URL
    eval        - Evaluate JavaScript and print the result
    click       - Click the first element matching a CSS selector
    type        - Type text into the first element matching a CSS selector
    screenshot  - Save a PNG screenshot of the selected page
    logs        - Stream console output until interrupted
"""

import argparse
import logging
import sys
from typing import List, Optional

from tool.cdp.config import Configuration, parse_timeout
from tool.cdp.logging_setup import setup_logging

logger = logging.getLogger(__name__)

CONFIG_FILE = "~/.cdprc"


class CLIArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad arguments like any other error."""

    def error(self, message):
        self.exit(1, f"Error: {message}\n")


def _timeout_arg(value: str) -> Optional[float]:
    try:
        return parse_timeout(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Connection and logging options default to None so that values from the
    environment and ~/.cdprc are only overridden when a flag is given.

    Returns:
        ArgumentParser with global options
    """
    parent = argparse.ArgumentParser(add_help=False)

    # Connection options
    parent.add_argument(
        "--host",
        help="Chrome remote debugging host (default: 127.0.0.1)",
    )
    parent.add_argument(
        "--port",
        type=int,
        help="Chrome remote debugging port (default: 9222)",
    )
    parent.add_argument(
        "--call-timeout",
        type=_timeout_arg,
        default=argparse.SUPPRESS,
        help="Seconds to wait for each CDP response, 'none' to wait forever (default: none)",
    )

    # Target selection
    parent.add_argument(
        "--target",
        help="Exact target id (substring filters are ignored when set)",
    )
    parent.add_argument(
        "--url-contains",
        help="Pick the first page whose URL contains this text",
    )
    parent.add_argument(
        "--title-contains",
        help="Pick the first page whose title contains this text",
    )

    # Logging options
    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: warning)",
    )
    parent.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log output format on stderr (default: text)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """
    Create main parser with all subcommands.

    Args:
        parent: Parent parser with global options

    Returns:
        Main ArgumentParser with subcommands configured
    """
    parser = CLIArgumentParser(
        prog="cdp-tool",
        description="Drive a Chrome page over the Chrome DevTools Protocol (CDP)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List page targets
  cdp-tool list

  # Navigate the first page whose URL contains "localhost"
  cdp-tool open https://example.com --url-contains localhost

  # Evaluate JavaScript
  cdp-tool eval "document.title"

  # Click and type
  cdp-tool click "button[type=submit]"
  cdp-tool type "#search" "hello world"

  # Screenshot (never overwrites: shot.png, shot-001.png, ...)
  cdp-tool screenshot shot.png

  # Stream console logs until Ctrl+C
  cdp-tool logs --title-contains Dashboard

Start Chrome with --remote-debugging-port=9222 first.
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        description="Available page operations",
    )

    from . import (
        list_cmd,
        open_cmd,
        eval_cmd,
        input_cmd,
        screenshot_cmd,
        logs_cmd,
    )

    list_cmd.register_subcommand(subparsers, parent)
    open_cmd.register_subcommand(subparsers, parent)
    eval_cmd.register_subcommand(subparsers, parent)
    input_cmd.register_subcommand(subparsers, parent)
    screenshot_cmd.register_subcommand(subparsers, parent)
    logs_cmd.register_subcommand(subparsers, parent)

    return parser


def load_configuration(args: argparse.Namespace) -> Configuration:
    """
    Build configuration with precedence: CLI > env > file > defaults.

    Args:
        args: Parsed command-line arguments

    Returns:
        Merged Configuration
    """
    config = Configuration()
    config.load_from_file(CONFIG_FILE)
    config.load_from_env()

    config.merge(
        chrome_host=getattr(args, "host", None),
        chrome_port=getattr(args, "port", None),
        log_level=getattr(args, "log_level", None),
        log_format=getattr(args, "log_format", None),
    )

    # Only present when the flag was given; None there means "no timeout"
    if hasattr(args, "call_timeout"):
        config.call_timeout = args.call_timeout

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Every error raised by a subcommand ends here: the message is printed to
    stderr as "Error: <message>" and the exit code is 1.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for errors, 130 when interrupted)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)

    args = parser.parse_args(argv)

    if args.subcommand is None:
        parser.print_help()
        return 0

    config = load_configuration(args)
    setup_logging(
        format_type=config.log_format,
        level=config.log_level.upper() if isinstance(config.log_level, str) else None,
        quiet=args.quiet,
        verbose=args.verbose,
    )

    # Attach config to args for subcommands to access
    args.config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.debug(f"{args.subcommand} failed: {type(e).__name__}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
