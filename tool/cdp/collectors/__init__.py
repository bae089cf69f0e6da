"""Event collectors that turn CDP event streams into output."""
