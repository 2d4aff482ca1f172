"""Probe result domain models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator


class Verdict(str, Enum):
    """Terminal state of one handshake attempt."""

    SUCCESS = "success"
    ERROR_RESPONSE = "error_response"
    TIMEOUT = "timeout"
    PROCESS_EXITED = "process_exited"
    SPAWN_FAILED = "spawn_failed"


class ProbeResult(BaseModel):
    """Outcome of attempting to contact one server."""

    name: str
    healthy: bool
    elapsed_ms: Optional[float] = None
    reason: Optional[str] = None
    verdict: Optional[Verdict] = None
    # False when the server was reported without being contacted (e.g. HTTP servers)
    probed: bool = True
    note: Optional[str] = None
    source_file: Optional[str] = None

    @model_validator(mode="after")
    def _check_healthy(self) -> "ProbeResult":
        if self.healthy and self.reason is not None:
            raise ValueError("a healthy result cannot carry a failure reason")
        if self.healthy and self.probed and self.elapsed_ms is None:
            raise ValueError("a healthy probe must record its elapsed time")
        return self

    @classmethod
    def success(cls, name: str, elapsed_ms: float, **kwargs) -> "ProbeResult":
        return cls(name=name, healthy=True, elapsed_ms=elapsed_ms, verdict=Verdict.SUCCESS, **kwargs)

    @classmethod
    def failure(
        cls, name: str, reason: str, verdict: Optional[Verdict] = None, **kwargs
    ) -> "ProbeResult":
        return cls(name=name, healthy=False, reason=reason, verdict=verdict, **kwargs)

    def get_status_display(self) -> str:
        """Get human-readable status."""
        if not self.healthy:
            return "✗ Failed"
        if not self.probed:
            return "○ Not tested"
        return "✓ Healthy"
