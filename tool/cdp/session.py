"""
CDP Session management: target discovery and scoped page connections.

A CDPSession knows where Chrome's debugging endpoint lives. It lists page
targets, picks one with select_target, and hands out an open CDPConnection
that is always closed when the caller's work ends.
"""

import json
import logging
import urllib.error
import urllib.request
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from .connection import CDPConnection, DEFAULT_MAX_SIZE
from .exceptions import CDPError, CDPHTTPError, ChromeUnreachableError
from .logging_setup import log_with_context
from .selection import SelectionCriteria, select_target

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Domains every session enables before handing the connection to the caller
SESSION_DOMAINS = ("Page", "Runtime", "Log")


@dataclass(frozen=True)
class Target:
    """
    A debuggable Chrome page as reported by the /json/list endpoint.

    Attributes:
        id: Unique target ID
        type: Target type ("page" for everything this tool returns)
        url: Target URL
        title: Page title
        webSocketDebuggerUrl: CDP WebSocket URL for this target
    """

    id: str
    type: str
    url: str
    title: str
    webSocketDebuggerUrl: str

    @classmethod
    def from_json(cls, target_data: Dict[str, Any]) -> "Target":
        """
        Build a Target from one entry of the Chrome HTTP endpoint response.

        Args:
            target_data: Raw target dictionary from /json/list
        """
        return cls(
            id=target_data.get("id", ""),
            type=target_data.get("type", ""),
            url=target_data.get("url") or "",
            title=target_data.get("title") or "",
            webSocketDebuggerUrl=target_data.get("webSocketDebuggerUrl") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert target to dictionary for JSON serialization."""
        return asdict(self)


class CDPSession:
    """
    Session manager for discovering Chrome targets and attaching to one.

    Usage:
        session = CDPSession("127.0.0.1", 9222)
        targets = session.list_targets()

        async with session.attach(SelectionCriteria(url_contains="example")) as (conn, target):
            await conn.call("Page.navigate", {"url": "https://example.com"})

    Attributes:
        chrome_host: Chrome host (default: "127.0.0.1")
        chrome_port: Chrome debugging port (default: 9222)
        timeout: HTTP request timeout for target discovery (default: 5s)
        call_timeout: CDP command timeout for attached connections (None waits forever)
        max_size: Maximum WebSocket message size for attached connections
    """

    def __init__(
        self,
        chrome_host: str = "127.0.0.1",
        chrome_port: int = 9222,
        timeout: float = 5.0,
        call_timeout: Optional[float] = None,
        max_size: int = DEFAULT_MAX_SIZE,
    ):
        """
        Initialize CDP session manager.

        Raises:
            ValueError: If chrome_port is out of range
        """
        if not 1 <= chrome_port <= 65535:
            raise ValueError(f"chrome_port must be 1-65535, got {chrome_port}")

        self.chrome_host = chrome_host
        self.chrome_port = chrome_port
        self.timeout = timeout
        self.call_timeout = call_timeout
        self.max_size = max_size

    @property
    def endpoint_url(self) -> str:
        return f"http://{self.chrome_host}:{self.chrome_port}/json/list"

    def list_targets(self) -> List[Target]:
        """
        Fetch page targets from the Chrome HTTP endpoint.

        Only targets of type "page" with a WebSocket debugger URL are returned,
        in the order Chrome reports them. Every call hits the endpoint once.

        Returns:
            List of page Targets

        Raises:
            ChromeUnreachableError: If the endpoint cannot be reached
            CDPHTTPError: If the endpoint answers with a non-success status
            CDPError: If the endpoint returns invalid data
        """
        endpoint_url = self.endpoint_url
        logger.debug(f"Fetching targets from {endpoint_url}")

        try:
            with urllib.request.urlopen(endpoint_url, timeout=self.timeout) as response:
                targets_data = json.loads(response.read())
        except urllib.error.HTTPError as e:
            raise CDPHTTPError(e.code, endpoint_url) from e
        except (urllib.error.URLError, OSError) as e:
            raise ChromeUnreachableError(endpoint_url, self.chrome_port) from e
        except json.JSONDecodeError as e:
            raise CDPError(
                f"Invalid JSON response from Chrome endpoint: {e}",
                details={"endpoint": endpoint_url},
            ) from e

        if not isinstance(targets_data, list):
            raise CDPError(
                "Invalid JSON response from Chrome endpoint: expected a list",
                details={"endpoint": endpoint_url},
            )

        return [
            Target.from_json(data)
            for data in targets_data
            if isinstance(data, dict)
            and data.get("type") == "page"
            and data.get("webSocketDebuggerUrl")
        ]

    def select(self, criteria: Optional[SelectionCriteria] = None) -> Target:
        """Fetch a fresh target listing and pick one according to criteria."""
        return select_target(self.list_targets(), criteria)

    @asynccontextmanager
    async def attach(
        self, criteria: Optional[SelectionCriteria] = None
    ) -> AsyncIterator[Tuple[CDPConnection, Target]]:
        """
        Connect to the selected target with Page, Runtime and Log enabled.

        The connection is closed on every exit path, including errors,
        task cancellation and KeyboardInterrupt.

        Yields:
            (connection, target) tuple

        Raises:
            CDPError: Any discovery, selection, connection or command failure
        """
        target = self.select(criteria)
        conn = CDPConnection(
            target.webSocketDebuggerUrl,
            call_timeout=self.call_timeout,
            max_size=self.max_size,
        )

        try:
            await conn.connect()
            log_with_context(
                logger, logging.INFO, "Attached to target",
                target_id=target.id, url=target.url,
            )
            for domain in SESSION_DOMAINS:
                await conn.call(f"{domain}.enable")
            yield conn, target
        finally:
            await conn.close()

    async def run(
        self,
        criteria: Optional[SelectionCriteria],
        body: Callable[[CDPConnection, Target], Awaitable[T]],
    ) -> T:
        """
        Run body(connection, target) inside attach() and return its result.

        Args:
            criteria: Target selection criteria
            body: Coroutine function doing the actual work
        """
        async with self.attach(criteria) as (conn, target):
            return await body(conn, target)
