"""
Console collector for CDP - streams console calls and uncaught exceptions from the page.
"""

import sys
from typing import List, Optional, TextIO

from ..connection import CDPConnection


def format_remote_object(arg: dict) -> str:
    """Render one Runtime.RemoteObject argument the way the log stream shows it."""
    if "value" in arg:
        value = arg["value"]
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    if arg.get("description"):
        return arg["description"]
    return arg.get("type") or "unknown"


def format_console_call(params: dict) -> str:
    """Format a Runtime.consoleAPICalled event as "[console.<type>] <args>"."""
    call_type = params.get("type") or "log"
    parts: List[str] = [format_remote_object(arg) for arg in params.get("args") or []]
    return f"[console.{call_type}] {' '.join(parts)}"


def format_exception(params: dict) -> str:
    """Format a Runtime.exceptionThrown event as "[exception] <text>"."""
    details = params.get("exceptionDetails") or {}
    return f"[exception] {details.get('text') or 'exception'}"


class ConsoleCollector:
    """
    Prints console API calls and uncaught exceptions as they arrive.

    The Runtime domain must already be enabled on the connection (CDPSession.attach
    does this). Subscriptions live as long as the connection.

    Usage:
        async with session.attach(criteria) as (conn, target):
            async with ConsoleCollector(conn):
                await stop_event.wait()

    Attributes:
        connection: Open CDP connection
        stream: Where formatted lines are written (default: stdout)
        lines_written: Number of lines emitted so far
    """

    def __init__(self, connection: CDPConnection, stream: Optional[TextIO] = None):
        self.connection = connection
        self.stream = stream
        self.lines_written = 0
        self._started = False

    def start(self) -> None:
        """Subscribe to Runtime.consoleAPICalled and Runtime.exceptionThrown."""
        if self._started:
            return
        self.connection.subscribe("Runtime.consoleAPICalled", self._on_console_call)
        self.connection.subscribe("Runtime.exceptionThrown", self._on_exception)
        self._started = True

    def _on_console_call(self, params: dict) -> None:
        self._emit(format_console_call(params))

    def _on_exception(self, params: dict) -> None:
        self._emit(format_exception(params))

    def _emit(self, line: str) -> None:
        print(line, file=self.stream or sys.stdout, flush=True)
        self.lines_written += 1

    async def __aenter__(self) -> "ConsoleCollector":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False
