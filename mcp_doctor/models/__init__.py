"""Domain models for MCP Doctor."""

from .diagnostic import Diagnostic, DiagnosticCode, DiagnosticLevel
from .config_file import ConfigDocument, ConfigLocation, ConfigScope, ContextLine, ErrorContext
from .server import ServerSpec, ServerTransport, servers_from_mapping
from .probe import ProbeResult, Verdict
from .log_entry import ProbeEventType, ProbeLogEntry
from .settings import DoctorSettings
from .report import CheckReport

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLevel",
    "ConfigDocument",
    "ConfigLocation",
    "ConfigScope",
    "ContextLine",
    "ErrorContext",
    "ServerSpec",
    "ServerTransport",
    "servers_from_mapping",
    "ProbeResult",
    "Verdict",
    "ProbeEventType",
    "ProbeLogEntry",
    "DoctorSettings",
    "CheckReport",
]
