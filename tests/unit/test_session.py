"""
Unit tests for CDPSession and Target classes.

Covers target discovery over HTTP and the attach/run connection scope.
"""

import asyncio
import json
import urllib.error
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock, call, patch

from tool.cdp.exceptions import (
    CDPConnectionError,
    CDPError,
    CDPHTTPError,
    CDPTargetNotFoundError,
    ChromeUnreachableError,
    CommandFailedError,
    ConnectionFailedError,
)
from tool.cdp.selection import SelectionCriteria
from tool.cdp.session import CDPSession, SESSION_DOMAINS, Target


@pytest.fixture
def mock_targets_response():
    """Mock Chrome /json/list endpoint response."""
    return [
        {
            "id": "page-1",
            "type": "page",
            "title": "Example Domain",
            "url": "https://example.com",
            "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/page-1",
            "devtoolsFrontendUrl": "/devtools/inspector.html?ws=127.0.0.1:9222/devtools/page/page-1",
        },
        {
            "id": "worker-1",
            "type": "service_worker",
            "title": "Service Worker",
            "url": "https://example.com/sw.js",
            "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/worker-1",
        },
        {
            "id": "page-attached",
            "type": "page",
            "title": "Already inspected",
            "url": "https://inspected.example",
        },
        {
            "id": "page-2",
            "type": "page",
            "title": "GitHub",
            "url": "https://github.com",
            "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/page-2",
        },
    ]


def mock_urlopen_response(payload):
    mock_response = Mock()
    mock_response.read.return_value = (
        payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    )
    mock_response.__enter__ = Mock(return_value=mock_response)
    mock_response.__exit__ = Mock(return_value=False)
    return mock_response


def test_target_from_json_defaults():
    target = Target.from_json(
        {"id": "t", "type": "page", "webSocketDebuggerUrl": "ws://h/devtools/page/t"}
    )
    assert target.url == ""
    assert target.title == ""


def test_target_is_immutable():
    target = Target("t", "page", "https://a", "A", "ws://h/devtools/page/t")
    with pytest.raises(AttributeError):
        target.url = "https://b"


def test_target_to_dict():
    target = Target("t", "page", "https://a", "A", "ws://h/devtools/page/t")
    assert target.to_dict() == {
        "id": "t",
        "type": "page",
        "url": "https://a",
        "title": "A",
        "webSocketDebuggerUrl": "ws://h/devtools/page/t",
    }


def test_cdp_session_initialization():
    session = CDPSession()

    assert session.chrome_host == "127.0.0.1"
    assert session.chrome_port == 9222
    assert session.timeout == 5.0
    assert session.call_timeout is None
    assert session.endpoint_url == "http://127.0.0.1:9222/json/list"


@pytest.mark.parametrize("port", [0, 65536])
def test_cdp_session_invalid_port(port):
    with pytest.raises(ValueError, match="chrome_port must be 1-65535"):
        CDPSession(chrome_port=port)


def test_list_targets_keeps_debuggable_pages_in_order(mock_targets_response):
    session = CDPSession("localhost", 9333, timeout=2.0)

    with patch(
        "urllib.request.urlopen", return_value=mock_urlopen_response(mock_targets_response)
    ) as mock_urlopen:
        targets = session.list_targets()

    args, kwargs = mock_urlopen.call_args
    assert args[0] == "http://localhost:9333/json/list"
    assert kwargs["timeout"] == 2.0

    assert [t.id for t in targets] == ["page-1", "page-2"]
    assert all(isinstance(t, Target) for t in targets)
    assert targets[1].webSocketDebuggerUrl == "ws://127.0.0.1:9222/devtools/page/page-2"


def test_list_targets_fetches_every_time(mock_targets_response):
    session = CDPSession()

    with patch(
        "urllib.request.urlopen", return_value=mock_urlopen_response(mock_targets_response)
    ) as mock_urlopen:
        session.list_targets()
        session.list_targets()

    assert mock_urlopen.call_count == 2


def test_list_targets_connection_error():
    session = CDPSession()

    with patch(
        "urllib.request.urlopen",
        side_effect=urllib.error.URLError(ConnectionRefusedError(111, "Connection refused")),
    ):
        with pytest.raises(ChromeUnreachableError) as exc_info:
            session.list_targets()

    assert isinstance(exc_info.value, CDPConnectionError)
    assert "Cannot connect to Chrome DevTools endpoint http://127.0.0.1:9222/json/list" in str(exc_info.value)
    assert "--remote-debugging-port=9222" in str(exc_info.value)


def test_list_targets_socket_timeout():
    session = CDPSession()

    with patch("urllib.request.urlopen", side_effect=TimeoutError("timed out")):
        with pytest.raises(ChromeUnreachableError):
            session.list_targets()


def test_list_targets_http_error():
    session = CDPSession()
    error = urllib.error.HTTPError(session.endpoint_url, 500, "Internal Server Error", {}, None)

    with patch("urllib.request.urlopen", side_effect=error):
        with pytest.raises(CDPHTTPError) as exc_info:
            session.list_targets()

    assert exc_info.value.status == 500
    assert str(exc_info.value) == "HTTP 500 for http://127.0.0.1:9222/json/list"


def test_list_targets_invalid_json():
    session = CDPSession()

    with patch("urllib.request.urlopen", return_value=mock_urlopen_response(b"NOT VALID JSON")):
        with pytest.raises(CDPError, match="Invalid JSON response"):
            session.list_targets()


def test_list_targets_non_list_body():
    session = CDPSession()

    with patch("urllib.request.urlopen", return_value=mock_urlopen_response({"Browser": "x"})):
        with pytest.raises(CDPError, match="expected a list"):
            session.list_targets()


def test_select_uses_fresh_listing(mock_targets_response):
    session = CDPSession()

    with patch(
        "urllib.request.urlopen", return_value=mock_urlopen_response(mock_targets_response)
    ):
        target = session.select(SelectionCriteria(url_contains="github"))

    assert target.id == "page-2"


# --- attach / run -------------------------------------------------------------


def make_session(targets):
    session = CDPSession()
    session.list_targets = Mock(return_value=targets)
    return session


def make_connection():
    conn = MagicMock()
    conn.connect = AsyncMock()
    conn.call = AsyncMock(return_value={})
    conn.close = AsyncMock()
    return conn


PAGE = Target("page-1", "page", "https://example.com", "Example", "ws://127.0.0.1:9222/devtools/page/page-1")


@pytest.mark.asyncio
async def test_run_enables_domains_and_closes():
    session = make_session([PAGE])
    conn = make_connection()
    body = AsyncMock(return_value="done")

    with patch("tool.cdp.session.CDPConnection", return_value=conn) as conn_cls:
        result = await session.run(None, body)

    assert result == "done"
    conn_cls.assert_called_once_with(
        PAGE.webSocketDebuggerUrl, call_timeout=None, max_size=session.max_size
    )
    conn.connect.assert_awaited_once()
    assert conn.call.await_args_list == [call(f"{d}.enable") for d in SESSION_DOMAINS]
    assert SESSION_DOMAINS == ("Page", "Runtime", "Log")
    body.assert_awaited_once_with(conn, PAGE)
    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_closes_when_body_raises():
    session = make_session([PAGE])
    conn = make_connection()
    body = AsyncMock(side_effect=CommandFailedError("boom"))

    with patch("tool.cdp.session.CDPConnection", return_value=conn):
        with pytest.raises(CommandFailedError, match="boom"):
            await session.run(None, body)

    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_closes_when_domain_enable_fails():
    session = make_session([PAGE])
    conn = make_connection()
    conn.call.side_effect = [{}, CommandFailedError("Runtime.enable refused"), {}]
    body = AsyncMock()

    with patch("tool.cdp.session.CDPConnection", return_value=conn):
        with pytest.raises(CommandFailedError, match="refused"):
            await session.run(None, body)

    body.assert_not_awaited()
    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_closes_when_cancelled():
    session = make_session([PAGE])
    conn = make_connection()
    started = asyncio.Event()

    async def body(conn, target):
        started.set()
        await asyncio.Event().wait()

    with patch("tool.cdp.session.CDPConnection", return_value=conn):
        task = asyncio.create_task(session.run(None, body))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_closes_on_keyboard_interrupt():
    session = make_session([PAGE])
    conn = make_connection()
    body = AsyncMock(side_effect=KeyboardInterrupt)

    with patch("tool.cdp.session.CDPConnection", return_value=conn):
        with pytest.raises(KeyboardInterrupt):
            await session.run(None, body)

    conn.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_connect_failure_propagates():
    session = make_session([PAGE])
    conn = make_connection()
    conn.connect.side_effect = ConnectionFailedError("Failed to connect to ws://...")
    body = AsyncMock()

    with patch("tool.cdp.session.CDPConnection", return_value=conn):
        with pytest.raises(ConnectionFailedError):
            await session.run(None, body)

    body.assert_not_awaited()
    conn.call.assert_not_awaited()


@pytest.mark.asyncio
async def test_selection_failure_never_connects():
    session = make_session([])
    body = AsyncMock()

    with patch("tool.cdp.session.CDPConnection") as conn_cls:
        with pytest.raises(CDPTargetNotFoundError, match="No page targets found"):
            await session.run(SelectionCriteria(url_contains="x"), body)

    conn_cls.assert_not_called()


@pytest.mark.asyncio
async def test_attach_yields_connection_and_target():
    other = Target("page-2", "page", "https://github.com", "GitHub", "ws://127.0.0.1:9222/devtools/page/page-2")
    session = make_session([PAGE, other])
    conn = make_connection()

    with patch("tool.cdp.session.CDPConnection", return_value=conn):
        async with session.attach(SelectionCriteria(title_contains="Git")) as (c, target):
            assert c is conn
            assert target is other
            conn.close.assert_not_awaited()

    conn.close.assert_awaited_once()
