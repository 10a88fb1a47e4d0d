"""Client and MCP server for Anviz biometric access-control terminals."""

__version__ = "0.1.0"
