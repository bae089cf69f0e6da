"""CDP WebSocket connection management.

Provides CDPConnection class for correlated CDP command execution and event subscription.
Handles WebSocket lifecycle, message routing, and failure propagation to pending calls.
"""

import asyncio
import enum
import inspect
import json
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Set

try:
    import websockets
    from websockets.asyncio.client import ClientConnection
    from websockets.exceptions import ConnectionClosed
except ImportError:
    raise ImportError(
        "websockets library not found. Install with: pip3 install websockets"
    )

from .exceptions import (
    CDPConnectionError,
    ConnectionFailedError,
    ConnectionClosedError,
    CommandFailedError,
    CDPTimeoutError,
)

logger = logging.getLogger(__name__)

# Screenshots arrive as a single base64 frame, so the default is generous
DEFAULT_MAX_SIZE = 64 * 1024 * 1024

EventHandler = Callable[[dict], Any]

_USE_DEFAULT = object()


class ConnectionState(enum.Enum):
    """Lifecycle of a CDPConnection. CLOSED is terminal."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class _PendingCommand(NamedTuple):
    method: str
    future: asyncio.Future


class CDPConnection:
    """Manages WebSocket connection to Chrome DevTools Protocol endpoint.

    Handles:
    - Connection lifecycle (connect, close, context manager)
    - Command execution correlated by id, independent of response order
    - Event subscription and in-order fan-out to handlers
    - Failing outstanding commands when the channel closes

    A connection is single-use: once closed it cannot be reopened.

    Usage:
        async with CDPConnection(ws_url) as conn:
            result = await conn.call("Runtime.evaluate", {"expression": "1+1"})
            conn.subscribe("Runtime.consoleAPICalled", my_callback)

    Attributes:
        ws_url: WebSocket debugger URL
        call_timeout: Default command timeout in seconds (None waits forever)
        max_size: Maximum WebSocket message size in bytes
    """

    def __init__(
        self,
        ws_url: str,
        *,
        call_timeout: Optional[float] = None,
        max_size: int = DEFAULT_MAX_SIZE,
    ):
        """Initialize CDP connection.

        Args:
            ws_url: WebSocket debugger URL (e.g., ws://localhost:9222/devtools/page/ABC123)
            call_timeout: Default command timeout in seconds, None for no timeout
            max_size: Maximum WebSocket message size in bytes
        """
        if not ws_url.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URL: {ws_url}")

        self.ws_url = ws_url
        self.call_timeout = call_timeout
        self.max_size = max_size

        self._ws: Optional[ClientConnection] = None
        self._state = ConnectionState.IDLE
        self._last_command_id: int = 0
        self._pending_commands: Dict[int, _PendingCommand] = {}
        self._event_handlers: Dict[str, List[EventHandler]] = {}
        self._receive_task: Optional[asyncio.Task] = None
        self._handler_tasks: Set[asyncio.Task] = set()
        self._ws_closed = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket connection is open."""
        return self._state is ConnectionState.OPEN

    @property
    def pending_count(self) -> int:
        """Number of commands still waiting for a response."""
        return len(self._pending_commands)

    async def connect(self) -> None:
        """Establish WebSocket connection and start receive loop.

        Raises:
            CDPConnectionError: If the connection was already used
            ConnectionFailedError: If WebSocket connection fails
        """
        if self._state is not ConnectionState.IDLE:
            raise CDPConnectionError(
                f"Cannot connect: connection is {self._state.value} (connections are single-use)"
            )

        self._state = ConnectionState.CONNECTING
        logger.info(f"Connecting to {self.ws_url}")
        try:
            self._ws = await websockets.connect(self.ws_url, max_size=self.max_size)
        except Exception as e:
            self._state = ConnectionState.CLOSED
            raise ConnectionFailedError(
                f"Failed to connect to {self.ws_url}: {e}"
            ) from e

        self._state = ConnectionState.OPEN
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("CDP connection established")

    async def close(self) -> None:
        """Close WebSocket connection.

        Also releases the socket when the receive loop already ended on its
        own. Calling it again, or before connect(), is a no-op.
        """
        if self._ws is None or self._ws_closed:
            return

        logger.info("Disconnecting CDP connection")
        self._ws_closed = True
        self._state = ConnectionState.CLOSED

        if self._receive_task and not self._receive_task.done():
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass

        self._fail_pending()
        self._cancel_handler_tasks()

        try:
            await self._ws.close()
        except Exception as e:
            logger.warning(f"Error closing WebSocket: {e}")

        logger.info("CDP connection closed")

    async def __aenter__(self) -> "CDPConnection":
        """Context manager entry: connect automatically."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit: close automatically."""
        await self.close()

    async def call(
        self,
        method: str,
        params: Optional[dict] = None,
        *,
        timeout: Any = _USE_DEFAULT,
    ) -> dict:
        """Execute CDP command and wait for its response.

        Args:
            method: CDP method name (e.g., "Runtime.evaluate", "Page.enable")
            params: Method parameters (default: empty dict)
            timeout: Seconds to wait for the response; defaults to
                self.call_timeout, None waits forever

        Returns:
            Command result dict (contents of "result" field in response)

        Raises:
            ConnectionClosedError: If connection is not open, or closes before
                the response arrives
            CommandFailedError: If Chrome returns error response
            CDPTimeoutError: If a timeout is set and expires
        """
        if self._state is not ConnectionState.OPEN:
            raise ConnectionClosedError("Cannot execute command: connection not active")

        self._last_command_id += 1
        cmd_id = self._last_command_id

        future = asyncio.get_running_loop().create_future()
        self._pending_commands[cmd_id] = _PendingCommand(method, future)

        message = json.dumps({"id": cmd_id, "method": method, "params": params or {}})
        cmd_timeout = self.call_timeout if timeout is _USE_DEFAULT else timeout

        # A failed send leaves the pending table through the finally below
        try:
            await self._ws.send(message)
            logger.debug(f"Sent command {cmd_id}: {method}")

            if cmd_timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout=cmd_timeout)
        except asyncio.TimeoutError:
            raise CDPTimeoutError(
                "Command timed out", command_method=method, timeout=cmd_timeout
            ) from None
        finally:
            self._pending_commands.pop(cmd_id, None)

    def subscribe(self, event_name: str, callback: EventHandler) -> None:
        """Register callback for CDP event.

        Callbacks run in registration order. A callback may be a plain function
        or a coroutine function; coroutines are scheduled as tasks.

        Args:
            event_name: CDP event name (e.g., "Runtime.consoleAPICalled")
            callback: Function with signature: callback(params: dict)

        Note:
            Events only arrive for enabled domains.
            Example: await conn.call("Runtime.enable")
        """
        self._event_handlers.setdefault(event_name, []).append(callback)
        logger.debug(f"Subscribed to event: {event_name}")

    async def _receive_loop(self) -> None:
        """Background task that feeds every inbound frame to _dispatch.

        When the channel closes, all outstanding commands fail with
        ConnectionClosedError.
        """
        try:
            async for message in self._ws:
                try:
                    self._dispatch(message)
                except Exception as e:
                    logger.error(f"Error processing CDP message: {e}", exc_info=True)
        except ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
        except Exception as e:
            logger.error(f"Receive loop error: {e}", exc_info=True)

        self._state = ConnectionState.CLOSED
        self._fail_pending()
        self._cancel_handler_tasks()

    def _dispatch(self, message: Any) -> None:
        """Route one inbound frame to a pending command or to event handlers.

        Responses for unknown ids and events nobody subscribed to are dropped.
        """
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Malformed CDP message: {e}")
            return

        if not isinstance(data, dict):
            logger.error(f"Unexpected CDP message: {data!r}")
            return

        if "id" in data:
            self._resolve_command(data)
        elif "method" in data:
            self._dispatch_event(data["method"], data.get("params") or {})

    def _resolve_command(self, data: dict) -> None:
        cmd_id = data["id"]
        pending = self._pending_commands.pop(cmd_id, None)
        if pending is None:
            logger.debug(f"Dropping response for unknown command id {cmd_id!r}")
            return

        # Caller may have been cancelled or timed out
        if pending.future.done():
            return

        error = data.get("error")
        if error is not None:
            pending.future.set_exception(
                CommandFailedError(
                    _error_message(error),
                    method=pending.method,
                    error_code=error.get("code") if isinstance(error, dict) else None,
                )
            )
        else:
            pending.future.set_result(data.get("result") or {})

    def _dispatch_event(self, event_name: str, params: dict) -> None:
        handlers = self._event_handlers.get(event_name)
        if not handlers:
            return

        logger.debug(f"Received event: {event_name}")
        for handler in list(handlers):
            try:
                outcome = handler(params)
            except Exception as e:
                logger.error(f"Event handler error for {event_name}: {e}", exc_info=True)
                continue

            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(outcome)
                self._handler_tasks.add(task)
                task.add_done_callback(self._handler_done)

    def _handler_done(self, task: asyncio.Task) -> None:
        self._handler_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Event handler error", exc_info=task.exception())

    def _cancel_handler_tasks(self) -> None:
        for task in list(self._handler_tasks):
            task.cancel()

    def _fail_pending(self) -> None:
        pending, self._pending_commands = self._pending_commands, {}
        for command in pending.values():
            if not command.future.done():
                command.future.set_exception(ConnectionClosedError("connection closed"))


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return json.dumps(error)
