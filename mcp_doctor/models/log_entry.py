"""Models for probe logging."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProbeEventType(str, Enum):
    """Type of probe log entry."""

    SPAWNED = "spawned"
    SPAWN_FAILED = "spawn_failed"
    REQUEST_SENT = "request_sent"
    LINE_DISCARDED = "line_discarded"
    RESPONSE_RECEIVED = "response_received"
    PROCESS_EXITED = "process_exited"
    TIMED_OUT = "timed_out"
    TERMINATED = "terminated"
    HTTP_SKIPPED = "http_skipped"


class ProbeLogEntry(BaseModel):
    """A log entry for one step of a server probe."""

    id: str = Field(default_factory=lambda: str(datetime.now().timestamp()))
    timestamp: datetime = Field(default_factory=datetime.now)
    event_type: ProbeEventType
    server_name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[str] = None
    duration_ms: Optional[float] = None

    def get_status(self) -> str:
        """Get human-readable status."""
        if self.error:
            return "ERROR"
        return "OK"

    def get_display_name(self) -> str:
        """Get display name for this entry."""
        type_icon = {
            ProbeEventType.SPAWNED: "🚀",
            ProbeEventType.REQUEST_SENT: "📤",
            ProbeEventType.RESPONSE_RECEIVED: "📥",
            ProbeEventType.TIMED_OUT: "⏱",
            ProbeEventType.TERMINATED: "🛑",
        }
        icon = type_icon.get(self.event_type, "📌")
        return f"{icon} {self.server_name}/{self.event_type.value}"
