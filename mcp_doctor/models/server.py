"""Server domain model."""

import json
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field


class ServerTransport(str, Enum):
    """Enumeration of server transports."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"


def _as_env_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


class ServerSpec(BaseModel):
    """One declared tool-server entry extracted from a config mapping."""

    name: str
    transport: ServerTransport = ServerTransport.STDIO

    # For stdio servers
    command: Optional[str] = None
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    cwd: Optional[str] = None

    # For http/sse servers
    url: Optional[str] = None

    description: Optional[str] = None
    source_file: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        """True for servers reached over HTTP rather than spawned locally."""
        return bool(self.url)

    @classmethod
    def from_entry(
        cls, name: str, entry: Mapping[str, Any], source_file: Optional[str] = None
    ) -> "ServerSpec":
        """Build a ServerSpec from a raw config entry, tolerating loosely typed fields."""
        command = entry.get("command")
        url = entry.get("url")
        args = entry.get("args")
        env = entry.get("env")
        cwd = entry.get("cwd")
        description = entry.get("description")

        try:
            transport = ServerTransport(entry.get("type") or "stdio")
        except ValueError:
            transport = ServerTransport.STDIO
        if url and transport == ServerTransport.STDIO:
            transport = ServerTransport.HTTP

        return cls(
            name=name,
            transport=transport,
            command=command if isinstance(command, str) and command else None,
            args=[a if isinstance(a, str) else str(a) for a in args] if isinstance(args, list) else [],
            env=(
                {str(k): _as_env_value(v) for k, v in env.items()}
                if isinstance(env, dict)
                else {}
            ),
            cwd=cwd if isinstance(cwd, str) and cwd else None,
            url=url if isinstance(url, str) and url else None,
            description=description if isinstance(description, str) else None,
            source_file=source_file,
        )

    def get_command_line(self) -> str:
        """Get the command and arguments as one display string."""
        return " ".join([self.command or "", *self.args]).strip()


def servers_from_mapping(
    mapping: Mapping[str, Any], source_file: Optional[str] = None
) -> Dict[str, ServerSpec]:
    """Convert a server mapping into specs, skipping entries that are not objects."""
    return {
        name: ServerSpec.from_entry(name, entry, source_file)
        for name, entry in mapping.items()
        if isinstance(entry, dict)
    }
