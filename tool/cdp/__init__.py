"""Python CDP client library for Chrome DevTools Protocol.

This package provides:
- CDPConnection: WebSocket connection with id-correlated calls and event fan-out
- CDPSession: Target discovery, selection and scoped page connections
- ConsoleCollector: Console and exception log streaming
- CLI: cdp-tool command-line interface (list, open, eval, click, type, screenshot, logs)
"""

__version__ = "0.1.0"
