"""
Click and type subcommands for simple page interaction.

Both run a small script through Runtime.evaluate against the first element
matching a CSS selector.
"""

import argparse
import asyncio

from ..page_scripts import click_expression, type_expression
from .common import check_page_result, criteria_from_args, session_from_args


async def click_handler_async(args: argparse.Namespace) -> int:
    async def click(conn, target):
        response = await conn.call(
            "Runtime.evaluate",
            {"expression": click_expression(args.selector), "returnByValue": True},
        )
        check_page_result(response, "click")

    await session_from_args(args).run(criteria_from_args(args), click)
    print(f"Clicked {args.selector}")
    return 0


async def type_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'type' command (async implementation).

    Sets the element's value in one step and fires input and change events,
    which is what most frameworks listen for. No per-key events are sent.
    """
    text = " ".join(args.text)

    async def type_text(conn, target):
        response = await conn.call(
            "Runtime.evaluate",
            {"expression": type_expression(args.selector, text), "returnByValue": True},
        )
        check_page_result(response, "type")

    await session_from_args(args).run(criteria_from_args(args), type_text)
    print(f"Typed into {args.selector}")
    return 0


def click_handler(args: argparse.Namespace) -> int:
    return asyncio.run(click_handler_async(args))


def type_handler(args: argparse.Namespace) -> int:
    return asyncio.run(type_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'click' and 'type' subcommands.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    click_parser = subparsers.add_parser(
        "click",
        parents=[parent],
        help="Click the first element matching a CSS selector",
        description="Click an element via document.querySelector(...).click()",
        epilog="""
Examples:
  cdp-tool click "button[type=submit]"
  cdp-tool click "#login" --url-contains localhost:3000
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    click_parser.add_argument("selector", help="CSS selector")
    click_parser.set_defaults(func=click_handler)

    type_parser = subparsers.add_parser(
        "type",
        parents=[parent],
        help="Type text into the first element matching a CSS selector",
        description="Set an input's value and fire input/change events",
        epilog="""
Examples:
  cdp-tool type "#search" hello world
  cdp-tool type "input[name=email]" "me@example.com"
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    type_parser.add_argument("selector", help="CSS selector")
    type_parser.add_argument(
        "text",
        nargs="+",
        help="Text to type (words are joined with spaces)",
    )
    type_parser.set_defaults(func=type_handler)
