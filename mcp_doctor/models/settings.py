"""Models for doctor settings."""

import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .. import __version__


class DoctorSettings(BaseModel):
    """User settings for MCP Doctor."""

    # Health probing
    skip_health: bool = False
    timeout_ms: int = Field(default=10_000, gt=0)
    max_concurrency: Optional[int] = Field(default=None, gt=0)

    # Handshake identity
    protocol_version: str = "2024-11-05"
    client_name: str = "mcp-doctor"
    client_version: str = __version__

    # Logging
    log_file: Optional[Path] = None
    max_log_entries: int = Field(default=1000, gt=0)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def get_config_path(cls, home: Optional[Path] = None) -> Path:
        """Get the path to the settings file.

        Returns:
            Path to ~/.config/mcp-doctor/config.toml
        """
        return (home or Path.home()) / ".config" / "mcp-doctor" / "config.toml"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "DoctorSettings":
        """Load settings from a TOML file.

        Returns:
            Loaded DoctorSettings, or defaults if the file doesn't exist or is invalid
        """
        config_path = config_path or cls.get_config_path()
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)

            if "log_file" in data:
                data["log_file"] = Path(data["log_file"]).expanduser()

            return cls(**data)
        except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
            print(f"⚠ Error loading settings from {config_path}: {e}")
            return cls()
