"""
Eval subcommand for executing JavaScript in Chrome targets.

Implements 'eval' command to execute JavaScript expressions via Runtime.evaluate.
"""

import argparse
import asyncio
import json
import sys

from .common import criteria_from_args, session_from_args


def render_value(remote_object: dict) -> str:
    """
    Render a by-value Runtime.RemoteObject for printing.

    Values are printed as indented JSON; objects without a value
    (undefined, functions, symbols) print as "undefined".
    """
    if "value" not in remote_object:
        return "undefined"
    return json.dumps(remote_object["value"], indent=2, ensure_ascii=False)


async def eval_handler_async(args: argparse.Namespace) -> int:
    """
    Handle 'eval' command (async implementation).

    Promises are awaited and the result is returned by value.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if the expression threw)
    """
    expression = " ".join(args.expression)

    async def evaluate(conn, target):
        return await conn.call(
            "Runtime.evaluate",
            {
                "expression": expression,
                "returnByValue": True,
                "awaitPromise": True,
            },
        )

    result = await session_from_args(args).run(criteria_from_args(args), evaluate)

    if "exceptionDetails" in result:
        print("Evaluation failed", file=sys.stderr)
        print(json.dumps(result["exceptionDetails"], indent=2), file=sys.stderr)
        return 1

    print(render_value(result.get("result") or {}))
    return 0


def eval_handler(args: argparse.Namespace) -> int:
    """
    Synchronous wrapper for eval_handler_async.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    return asyncio.run(eval_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'eval' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    eval_parser = subparsers.add_parser(
        "eval",
        parents=[parent],
        help="Execute JavaScript in a target",
        description="Execute JavaScript expression via Runtime.evaluate",
        epilog="""
Examples:
  # Evaluate in first page
  cdp-tool eval "document.title"

  # Evaluate in specific target
  cdp-tool eval --target <target-id> "window.location.href"

  # Evaluate in target matching URL
  cdp-tool eval --url-contains example.com "document.querySelector('h1').textContent"

  # Promises are awaited
  cdp-tool eval "fetch('/api/data').then(r => r.json())"
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    eval_parser.add_argument(
        "expression",
        nargs="+",
        help="JavaScript expression to evaluate (words are joined with spaces)",
    )

    eval_parser.set_defaults(func=eval_handler)
