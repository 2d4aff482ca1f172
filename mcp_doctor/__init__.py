"""MCP Doctor - diagnose MCP tool-server configuration files."""

__version__ = "0.1.0"
