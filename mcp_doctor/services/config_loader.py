"""Configuration file locations and server-mapping extraction."""

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..models import ConfigLocation, ConfigScope

# Each rule is a key path into the config mapping; rules are tried in order
SERVER_MAPPING_RULES: Tuple[Tuple[str, ...], ...] = (
    ("mcpServers",),
    ("mcp.servers",),
    ("servers",),
    ("mcp", "servers"),
)


def get_servers_from_config(config: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first server mapping found by the extraction rules, if any."""
    for rule in SERVER_MAPPING_RULES:
        value: Any = config
        for key in rule:
            if not isinstance(value, Mapping) or key not in value:
                value = None
                break
            value = value[key]
        if isinstance(value, dict):
            return value
    return None


def find_server_mapping_key(config: Mapping[str, Any]) -> Optional[str]:
    """Return the dotted name of the first rule whose key is present, object or not."""
    for rule in SERVER_MAPPING_RULES:
        value: Any = config
        for key in rule:
            if not isinstance(value, Mapping) or key not in value:
                break
            value = value[key]
        else:
            return ".".join(rule) if len(rule) > 1 else rule[0]
    return None


class MCPConfigLocator:
    """Locates candidate MCP configuration files for known clients."""

    def __init__(
        self,
        home: Optional[Path] = None,
        project_dir: Optional[Path] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        exists: Callable[[Path], bool] = Path.exists,
    ) -> None:
        """Initialize the locator.

        Args:
            home: Home directory (defaults to the current user's)
            project_dir: Project directory for project-scoped configs (defaults to cwd)
            platform: ``sys.platform`` style identifier
            environ: Environment used to resolve ``APPDATA`` on Windows
            exists: Existence check, replaceable in tests
        """
        self.home = home or Path.home()
        self.project_dir = project_dir or Path.cwd()
        self.platform = platform or sys.platform
        self.environ = environ if environ is not None else os.environ
        self._exists = exists

    def _app_data(self) -> Path:
        app_data = self.environ.get("APPDATA")
        return Path(app_data) if app_data else self.home / "AppData" / "Roaming"

    def _per_platform(self, mac: str, windows: str, linux: str) -> Path:
        if self.platform == "darwin":
            return self.home / "Library" / "Application Support" / mac
        if self.platform == "win32":
            return self._app_data() / windows
        return self.home / ".config" / linux

    def _candidates(self) -> List[Tuple[str, ConfigScope, Path]]:
        home = self.home
        cwd = self.project_dir
        return [
            # Claude Desktop
            (
                "Claude Desktop",
                ConfigScope.GLOBAL,
                self._per_platform(
                    "Claude/claude_desktop_config.json",
                    "Claude/claude_desktop_config.json",
                    "claude/claude_desktop_config.json",
                ),
            ),
            # Claude Code
            ("Claude Code", ConfigScope.GLOBAL, home / ".claude.json"),
            ("Claude Code", ConfigScope.PROJECT, cwd / ".mcp.json"),
            # Cursor, plus its older global location
            (
                "Cursor",
                ConfigScope.GLOBAL,
                self._per_platform(
                    "Cursor/User/globalStorage/cursor.mcp/mcp.json",
                    "Cursor/User/globalStorage/cursor.mcp/mcp.json",
                    "Cursor/User/globalStorage/cursor.mcp/mcp.json",
                ),
            ),
            ("Cursor", ConfigScope.GLOBAL, home / ".cursor" / "mcp.json"),
            ("Cursor", ConfigScope.PROJECT, cwd / ".cursor" / "mcp.json"),
            # VS Code
            (
                "VS Code",
                ConfigScope.GLOBAL,
                self._per_platform(
                    "Code/User/settings.json", "Code/User/settings.json", "Code/User/settings.json"
                ),
            ),
            ("VS Code", ConfigScope.PROJECT, cwd / ".vscode" / "settings.json"),
            # Windsurf
            ("Windsurf", ConfigScope.GLOBAL, home / ".codeium" / "windsurf" / "mcp_config.json"),
            # GitHub Copilot for IntelliJ
            (
                "GitHub Copilot",
                ConfigScope.GLOBAL,
                home / ".config" / "github-copilot" / "intellij" / "mcp.json",
            ),
        ]

    def get_config_locations(self) -> List[ConfigLocation]:
        """Get every known config location, flagging the ones that exist."""
        return [
            ConfigLocation(client=client, scope=scope, path=str(path), exists=self._exists(path))
            for client, scope, path in self._candidates()
        ]

    @staticmethod
    def location_for_file(path: Path) -> ConfigLocation:
        """Wrap an explicitly requested file as a config location."""
        return ConfigLocation(
            client="Custom",
            scope=ConfigScope.PROJECT,
            path=str(path),
            exists=path.exists(),
        )

    @staticmethod
    def existing(locations: Sequence[ConfigLocation]) -> List[ConfigLocation]:
        """Only the locations that exist; the core never reads the others."""
        return [loc for loc in locations if loc.exists]
