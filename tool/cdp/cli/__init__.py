"""Command-line interface for cdp-tool."""
