"""Tests for path and environment-variable checks."""

import os
import stat
import sys

import pytest

from mcp_doctor.models import DiagnosticCode, DiagnosticLevel, ServerSpec
from mcp_doctor.services.env_checks import (
    looks_like_secret,
    referenced_variables,
    validate_env_vars,
    validate_server_env,
)
from mcp_doctor.services.path_checks import validate_paths, validate_server_paths


def path_codes(server, config_path, environ=None, platform="linux"):
    environ = environ if environ is not None else {"PATH": os.environ.get("PATH", "")}
    return [d.code for d in validate_server_paths(server, config_path, environ, platform)]


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "mcp.json")


def test_missing_command(config_path):
    """A stdio server without a command is an error."""
    diagnostics = validate_server_paths(ServerSpec(name="s"), config_path, {})

    assert [d.code for d in diagnostics] == [DiagnosticCode.MISSING_COMMAND]
    assert diagnostics[0].level == DiagnosticLevel.ERROR


def test_remote_server_is_skipped(config_path):
    """Servers with a URL have no local paths to check."""
    server = ServerSpec(name="s", url="https://example.com/mcp")

    assert path_codes(server, config_path) == []


def test_absolute_executable_passes(config_path):
    """An existing executable absolute path is fine."""
    server = ServerSpec(name="s", command=sys.executable)

    assert path_codes(server, config_path) == []


def test_absolute_path_missing(tmp_path, config_path):
    """A missing absolute command path is an error."""
    server = ServerSpec(name="s", command=str(tmp_path / "bin" / "server"))

    assert path_codes(server, config_path) == [DiagnosticCode.PATH_NOT_FOUND]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_not_executable(tmp_path, config_path):
    """A command file without the execute bit is an error."""
    script = tmp_path / "server.sh"
    script.write_text("#!/bin/sh\n")
    script.chmod(stat.S_IRUSR | stat.S_IWUSR)

    server = ServerSpec(name="s", command=str(script))

    assert path_codes(server, config_path) == [DiagnosticCode.PATH_NOT_EXECUTABLE]


def test_relative_path_resolves_against_config_dir(tmp_path, config_path):
    """Relative commands resolve from the config directory and get a warning."""
    script = tmp_path / "bin" / "server"
    script.parent.mkdir()
    script.write_text("#!/bin/sh\n")
    script.chmod(0o755)

    server = ServerSpec(name="s", command="./bin/server")
    diagnostics = validate_server_paths(server, config_path, {}, "linux")

    assert [d.code for d in diagnostics] == [DiagnosticCode.PATH_RELATIVE]
    assert diagnostics[0].level == DiagnosticLevel.WARNING
    assert str(script.resolve()) in diagnostics[0].suggestion


def test_relative_path_missing(config_path):
    """A missing relative command is an error plus the relative-path warning."""
    server = ServerSpec(name="s", command="./nope/server")

    assert path_codes(server, config_path) == [
        DiagnosticCode.PATH_NOT_FOUND,
        DiagnosticCode.PATH_RELATIVE,
    ]


def test_filename_without_path(config_path):
    """A bare filename is probably meant to be a path."""
    server = ServerSpec(name="s", command="server.js")

    assert path_codes(server, config_path) == [DiagnosticCode.POSSIBLE_PATH_TYPO]


def test_bare_command_not_on_path(tmp_path, config_path):
    """A bare command missing from PATH is a warning, not an error."""
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    server = ServerSpec(name="s", command="npx")

    diagnostics = validate_server_paths(server, config_path, {"PATH": str(empty)}, "linux")

    assert [d.code for d in diagnostics] == [DiagnosticCode.COMMAND_NOT_FOUND]
    assert diagnostics[0].level == DiagnosticLevel.WARNING


def test_server_path_overrides_environment(tmp_path, config_path):
    """A PATH declared in the server's env is used for lookup."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    tool = bin_dir / "mytool"
    tool.write_text("#!/bin/sh\n")
    tool.chmod(0o755)
    server = ServerSpec(name="s", command="mytool", env={"PATH": str(bin_dir)})

    assert path_codes(server, config_path, environ={"PATH": ""}) == []


def test_missing_cwd(tmp_path, config_path):
    """A working directory that does not exist is an error."""
    server = ServerSpec(name="s", command=sys.executable, cwd="missing-dir")

    assert path_codes(server, config_path) == [DiagnosticCode.CWD_NOT_FOUND]


def test_existing_relative_cwd(tmp_path, config_path):
    """A relative working directory is resolved from the config directory."""
    (tmp_path / "work").mkdir()
    server = ServerSpec(name="s", command=sys.executable, cwd="work")

    assert path_codes(server, config_path) == []


def test_argument_paths(tmp_path, config_path):
    """Only absolute argument paths that do not exist are flagged."""
    server = ServerSpec(
        name="s",
        command=sys.executable,
        args=[
            "--port=3000",
            "https://example.com/a/b",
            "relative/file.txt",
            str(tmp_path),
            str(tmp_path / "missing" / "data.db"),
        ],
    )

    assert path_codes(server, config_path) == [DiagnosticCode.ARG_PATH_NOT_FOUND]


def test_validate_paths_over_config(config_path):
    """Every object entry in the server mapping is checked."""
    config = {"mcpServers": {"a": {}, "b": "ignored", "c": {"command": sys.executable}}}

    diagnostics = validate_paths(config, config_path, {}, "linux")

    assert [d.code for d in diagnostics] == [DiagnosticCode.MISSING_COMMAND]
    assert '"a"' in diagnostics[0].message


def test_referenced_variables():
    """Both ${VAR} and $VAR references are found."""
    assert referenced_variables("${HOME}/x:$API_TOKEN") == ["HOME", "API_TOKEN"]
    assert referenced_variables("plain") == []


def test_missing_variable_reference(config_path):
    """A reference to an unset variable is a warning."""
    diagnostics = validate_server_env("s", {"KEY": "${MISSING_VAR}"}, config_path, {})

    assert [d.code for d in diagnostics] == [DiagnosticCode.ENV_VAR_MISSING]
    assert "MISSING_VAR" in diagnostics[0].message


def test_set_variable_reference(config_path):
    """A reference to a set variable passes."""
    environ = {"MY_TOKEN": "secret"}

    assert validate_server_env("s", {"API_TOKEN": "${MY_TOKEN}"}, config_path, environ) == []


def test_empty_value_is_not_also_a_secret(config_path):
    """An empty value under a secret-looking key is reported once, as empty."""
    diagnostics = validate_server_env("s", {"API_KEY": ""}, config_path, {})

    assert [d.code for d in diagnostics] == [DiagnosticCode.ENV_VAR_EMPTY]


def test_hardcoded_secret_by_key(config_path):
    """Literal values under credential-like keys are flagged."""
    diagnostics = validate_server_env("s", {"GITHUB_TOKEN": "abc123"}, config_path, {})

    assert [d.code for d in diagnostics] == [DiagnosticCode.HARDCODED_SECRET]


def test_hardcoded_secret_by_value(config_path):
    """Token-shaped values are flagged whatever the key."""
    value = "ghp_" + "a" * 36
    diagnostics = validate_server_env("s", {"SETTING": value}, config_path, {})

    assert [d.code for d in diagnostics] == [DiagnosticCode.HARDCODED_SECRET]


def test_looks_like_secret():
    """References are never secrets; ordinary settings are not either."""
    assert looks_like_secret("OPENAI_API_KEY", "sk-" + "x" * 30)
    assert not looks_like_secret("OPENAI_API_KEY", "${OPENAI_API_KEY}")
    assert not looks_like_secret("LOG_LEVEL", "debug")


def test_validate_env_vars_over_config(config_path):
    """Only object entries with an env object are checked."""
    config = {
        "mcpServers": {
            "a": {"command": "x", "env": {"LOG_LEVEL": "info"}},
            "b": {"command": "x", "env": ["not", "a", "mapping"]},
            "c": {"command": "x", "env": {"DB_PASSWORD": "hunter2"}},
        }
    }

    diagnostics = validate_env_vars(config, config_path, {})

    assert [d.code for d in diagnostics] == [DiagnosticCode.HARDCODED_SECRET]
    assert '"c"' in diagnostics[0].message
