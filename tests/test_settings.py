"""Tests for settings loading."""

from pathlib import Path

from mcp_doctor.models import DoctorSettings


def test_defaults_when_missing(tmp_path):
    """A missing settings file yields defaults."""
    settings = DoctorSettings.load(tmp_path / "config.toml")

    assert settings == DoctorSettings()
    assert settings.timeout_ms == 10_000
    assert settings.timeout_seconds == 10.0
    assert not settings.skip_health


def test_load_from_toml(tmp_path):
    """Values in the TOML file override defaults."""
    path = tmp_path / "config.toml"
    path.write_text(
        'timeout_ms = 2500\nmax_concurrency = 4\nskip_health = true\nlog_file = "~/probe.jsonl"\n'
    )

    settings = DoctorSettings.load(path)

    assert settings.timeout_ms == 2500
    assert settings.max_concurrency == 4
    assert settings.skip_health
    assert settings.log_file == Path("~/probe.jsonl").expanduser()


def test_invalid_toml_falls_back(tmp_path, capsys):
    """Broken settings produce a warning and defaults."""
    path = tmp_path / "config.toml"
    path.write_text("timeout_ms = = 3")

    settings = DoctorSettings.load(path)

    assert settings == DoctorSettings()
    assert "Error loading settings" in capsys.readouterr().out


def test_invalid_values_fall_back(tmp_path, capsys):
    """Values that fail validation produce defaults."""
    path = tmp_path / "config.toml"
    path.write_text("timeout_ms = -5\n")

    assert DoctorSettings.load(path).timeout_ms == 10_000
    assert "Error loading settings" in capsys.readouterr().out


def test_config_path(tmp_path):
    """Settings live under ~/.config/mcp-doctor."""
    assert DoctorSettings.get_config_path(tmp_path) == tmp_path / ".config" / "mcp-doctor" / "config.toml"
