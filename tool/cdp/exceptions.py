"""Exception hierarchy for CDP operations.

All CDP-related exceptions inherit from CDPError base class.
Provides structured error types for discovery, connection, command, selection
and timeout failures.
"""

from typing import Optional


class CDPError(Exception):
    """Base exception for all CDP-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CDPConnectionError(CDPError):
    """Connection failures.

    Raised when the discovery endpoint or the WebSocket channel cannot be
    reached, or when the channel closes while calls are outstanding.
    """

    pass


class ConnectionFailedError(CDPConnectionError):
    """Initial WebSocket connection failed.

    Common causes: stale debugger URL, page closed, Chrome exited.
    """

    pass


class ConnectionClosedError(CDPConnectionError):
    """Connection closed.

    Raised for calls that were outstanding when the channel closed, and for
    calls issued on a connection that is not open.
    """

    pass


class ChromeUnreachableError(CDPConnectionError):
    """Discovery endpoint unreachable.

    Raised when the /json/list HTTP endpoint refuses the connection, the host
    does not resolve, or the request times out.
    """

    def __init__(self, url: str, port: int, details: Optional[dict] = None):
        super().__init__(
            f"Cannot connect to Chrome DevTools endpoint {url}. "
            f"Start Chrome with --remote-debugging-port={port}.",
            details,
        )
        self.url = url
        self.port = port


class CDPHTTPError(CDPError):
    """Discovery endpoint answered with a non-success HTTP status."""

    def __init__(self, status: int, url: str, details: Optional[dict] = None):
        super().__init__(f"HTTP {status} for {url}", details)
        self.status = status
        self.url = url


class CDPCommandError(CDPError):
    """Command execution failures.

    Raised when CDP command returns an error response.
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.error_code = error_code


class CommandFailedError(CDPCommandError):
    """Command returned error response.

    Raised when Chrome returns error response for executed command.
    Example: unknown method name, invalid parameters for Page.navigate
    """

    pass


class CDPTimeoutError(CDPError):
    """Command timed out.

    Only raised when a call timeout is configured; by default calls wait
    for their response indefinitely.
    """

    def __init__(
        self,
        message: str,
        command_method: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.command_method = command_method
        self.timeout = timeout

    def __str__(self):
        if self.command_method and self.timeout:
            return f"Command '{self.command_method}' timed out after {self.timeout}s"
        return self.message


class CDPTargetNotFoundError(CDPError):
    """Target selection failures.

    Raised when no page target satisfies the selection criteria.

    Attributes:
        reason: "no_targets", "not_found" (unknown exact id) or "no_match"
        target_id: Requested exact target id, if any
        url_pattern: Requested URL substring, if any
    """

    NO_TARGETS = "no_targets"
    NOT_FOUND = "not_found"
    NO_MATCH = "no_match"

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        target_id: Optional[str] = None,
        url_pattern: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.reason = reason
        self.target_id = target_id
        self.url_pattern = url_pattern
