"""
Helpers shared by the subcommand modules.
"""

import argparse

from ..exceptions import CDPError
from ..selection import SelectionCriteria
from ..session import CDPSession


def session_from_args(args: argparse.Namespace) -> CDPSession:
    """Create a CDPSession from the merged configuration attached by main()."""
    config = args.config
    return CDPSession(
        chrome_host=config.chrome_host,
        chrome_port=config.chrome_port,
        timeout=config.http_timeout,
        call_timeout=config.call_timeout,
        max_size=config.max_size,
    )


def criteria_from_args(args: argparse.Namespace) -> SelectionCriteria:
    return SelectionCriteria(
        target_id=getattr(args, "target", None),
        url_contains=getattr(args, "url_contains", None),
        title_contains=getattr(args, "title_contains", None),
    )


def check_page_result(response: dict, action: str) -> None:
    """
    Raise if a page script returned {"ok": false, ...}.

    Raises:
        CDPError: "<action> failed: <reason>"
    """
    value = (response.get("result") or {}).get("value")
    if not isinstance(value, dict) or not value.get("ok"):
        reason = value.get("reason") if isinstance(value, dict) else None
        raise CDPError(f"{action} failed: {reason or 'unknown'}")
