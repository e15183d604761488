"""MCP server reporting host CPU, memory, disk, network, battery and internet speed."""

__version__ = "1.0.0"
