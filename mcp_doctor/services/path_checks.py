"""Validation of executable paths and working directories."""

import os
import shutil
import sys
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ..models import Diagnostic, DiagnosticCode, ServerSpec
from .config_loader import get_servers_from_config

# Bare commands resolved through PATH that are never mistaken for filenames
COMMON_COMMANDS = frozenset({"npx", "node", "python", "python3", "uv", "uvx", "deno", "bun"})


def _is_path_like(command: str) -> bool:
    return "/" in command or "\\" in command


def _resolve(value: str, config_dir: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else (config_dir / path).resolve()


def validate_server_paths(
    server: ServerSpec,
    config_path: str,
    environ: Mapping[str, str],
    platform: Optional[str] = None,
) -> List[Diagnostic]:
    """Validate the command, cwd and argument paths of one server."""
    results: List[Diagnostic] = []
    platform = platform or sys.platform
    config_dir = Path(config_path).parent
    name = server.name

    if server.is_remote:
        return results

    if not server.command:
        results.append(
            Diagnostic.error(
                DiagnosticCode.MISSING_COMMAND,
                f'Server "{name}": No command specified',
                config_path,
                suggestion='Add a "command" field specifying how to start the server',
            )
        )
        return results

    command = server.command

    if _is_path_like(command):
        resolved = _resolve(command, config_dir)

        if not resolved.exists():
            results.append(
                Diagnostic.error(
                    DiagnosticCode.PATH_NOT_FOUND,
                    f'Server "{name}": Command path does not exist: {command}',
                    config_path,
                    suggestion=f"Check the path is correct. Resolved to: {resolved}",
                )
            )
        elif platform != "win32" and not os.access(resolved, os.X_OK):
            results.append(
                Diagnostic.error(
                    DiagnosticCode.PATH_NOT_EXECUTABLE,
                    f'Server "{name}": Command is not executable: {command}',
                    config_path,
                    suggestion=f'Run: chmod +x "{resolved}"',
                )
            )

        if not Path(command).expanduser().is_absolute():
            results.append(
                Diagnostic.warning(
                    DiagnosticCode.PATH_RELATIVE,
                    f'Server "{name}": Using relative path "{command}"',
                    config_path,
                    suggestion=f"Consider using absolute path: {resolved}",
                )
            )
    elif "." in command and command not in COMMON_COMMANDS:
        results.append(
            Diagnostic.warning(
                DiagnosticCode.POSSIBLE_PATH_TYPO,
                f'Server "{name}": "{command}" looks like a filename but isn\'t a path',
                config_path,
                suggestion='If this is a file, use a full path like "./server.js" or "/path/to/server.js"',
            )
        )
    else:
        search_path = server.env.get("PATH", environ.get("PATH", ""))
        if shutil.which(command, path=search_path) is None:
            results.append(
                Diagnostic.warning(
                    DiagnosticCode.COMMAND_NOT_FOUND,
                    f'Server "{name}": Command "{command}" was not found on PATH',
                    config_path,
                    suggestion="Install it, or use the absolute path; clients may not inherit your shell's PATH",
                )
            )

    if server.cwd:
        cwd_path = _resolve(server.cwd, config_dir)
        if not cwd_path.is_dir():
            results.append(
                Diagnostic.error(
                    DiagnosticCode.CWD_NOT_FOUND,
                    f'Server "{name}": Working directory does not exist: {server.cwd}',
                    config_path,
                    suggestion=f"Create the directory or update the path. Resolved to: {cwd_path}",
                )
            )

    for arg in server.args:
        # Only absolute file paths are checked, never flags or URLs
        if arg.startswith("-") or arg.startswith("http") or not _is_path_like(arg):
            continue
        if Path(arg).is_absolute() and not Path(arg).exists():
            results.append(
                Diagnostic.warning(
                    DiagnosticCode.ARG_PATH_NOT_FOUND,
                    f'Server "{name}": Argument path may not exist: {arg}',
                    config_path,
                    suggestion="Verify this path is correct",
                )
            )

    return results


def validate_paths(
    config: Mapping[str, Any],
    config_path: str,
    environ: Mapping[str, str],
    platform: Optional[str] = None,
) -> List[Diagnostic]:
    """Validate paths for every server declared in a config mapping."""
    servers = get_servers_from_config(config)
    if not servers:
        return []

    results: List[Diagnostic] = []
    for name, entry in servers.items():
        if not isinstance(entry, dict):
            continue
        server = ServerSpec.from_entry(name, entry, config_path)
        results.extend(validate_server_paths(server, config_path, environ, platform))
    return results
