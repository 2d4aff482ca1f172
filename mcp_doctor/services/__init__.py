"""Services for MCP Doctor."""

from .config_loader import MCPConfigLocator, get_servers_from_config
from .json_syntax import validate_json_syntax, validate_json_text

__all__ = [
    "MCPConfigLocator",
    "get_servers_from_config",
    "validate_json_syntax",
    "validate_json_text",
]
