"""Tests for config discovery and server-mapping extraction."""

from pathlib import Path

from mcp_doctor.models import ConfigScope
from mcp_doctor.services.config_loader import (
    MCPConfigLocator,
    find_server_mapping_key,
    get_servers_from_config,
)


def test_mcp_servers_key():
    """The common mcpServers key is found."""
    assert get_servers_from_config({"mcpServers": {"a": {}}}) == {"a": {}}


def test_rule_priority():
    """mcpServers wins over servers when both are present."""
    config = {"servers": {"b": {}}, "mcpServers": {"a": {}}}

    assert get_servers_from_config(config) == {"a": {}}


def test_vscode_layouts():
    """VS Code settings use either a dotted key or a nested mcp object."""
    assert get_servers_from_config({"mcp.servers": {"a": {}}}) == {"a": {}}
    assert get_servers_from_config({"mcp": {"servers": {"b": {}}}}) == {"b": {}}


def test_non_object_mapping_falls_through():
    """A rule whose value is not an object does not match."""
    assert get_servers_from_config({"mcpServers": [], "servers": {"a": {}}}) == {"a": {}}
    assert get_servers_from_config({"mcpServers": "oops"}) is None


def test_no_mapping():
    """Configs without any server mapping yield None."""
    assert get_servers_from_config({"editor.fontSize": 12}) is None
    assert get_servers_from_config({"mcp": "on"}) is None


def test_find_server_mapping_key():
    """The key is reported even when its value has the wrong type."""
    assert find_server_mapping_key({"mcpServers": []}) == "mcpServers"
    assert find_server_mapping_key({"mcp": {"servers": 3}}) == "mcp.servers"
    assert find_server_mapping_key({"other": {}}) is None


def test_linux_locations(tmp_path):
    """Linux paths live under ~/.config, and existing files are flagged."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    (project).mkdir()
    (project / ".mcp.json").write_text("{}")

    locator = MCPConfigLocator(home=home, project_dir=project, platform="linux")
    locations = locator.get_config_locations()

    by_path = {loc.path: loc for loc in locations}
    desktop = str(home / ".config" / "claude" / "claude_desktop_config.json")
    assert by_path[desktop].client == "Claude Desktop"
    assert not by_path[desktop].exists

    project_config = by_path[str(project / ".mcp.json")]
    assert project_config.exists
    assert project_config.scope == ConfigScope.PROJECT
    assert MCPConfigLocator.existing(locations) == [project_config]


def test_macos_locations(tmp_path):
    """macOS paths live under Application Support."""
    locator = MCPConfigLocator(
        home=tmp_path, project_dir=tmp_path, platform="darwin", exists=lambda p: False
    )
    paths = [loc.path for loc in locator.get_config_locations()]

    assert (
        str(tmp_path / "Library" / "Application Support" / "Claude" / "claude_desktop_config.json")
        in paths
    )


def test_windows_locations_use_appdata(tmp_path):
    """Windows paths are resolved from APPDATA."""
    app_data = tmp_path / "Roaming"
    locator = MCPConfigLocator(
        home=tmp_path,
        project_dir=tmp_path,
        platform="win32",
        environ={"APPDATA": str(app_data)},
        exists=lambda p: False,
    )
    paths = [loc.path for loc in locator.get_config_locations()]

    assert str(app_data / "Claude" / "claude_desktop_config.json") in paths
    assert str(app_data / "Code" / "User" / "settings.json") in paths


def test_every_known_client_is_searched(tmp_path):
    """Each supported client contributes at least one candidate."""
    locator = MCPConfigLocator(home=tmp_path, project_dir=tmp_path, exists=lambda p: True)
    clients = {loc.client for loc in locator.get_config_locations()}

    assert clients == {
        "Claude Desktop",
        "Claude Code",
        "Cursor",
        "VS Code",
        "Windsurf",
        "GitHub Copilot",
    }


def test_location_for_file(tmp_path):
    """An explicit file becomes a custom location."""
    path = tmp_path / "custom.json"
    path.write_text("{}")

    location = MCPConfigLocator.location_for_file(path)

    assert location.client == "Custom"
    assert location.exists
    assert not MCPConfigLocator.location_for_file(Path(tmp_path / "nope.json")).exists
