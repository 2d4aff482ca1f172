"""Diagnostic domain model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class DiagnosticLevel(str, Enum):
    """Severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticCode(str, Enum):
    """Machine-readable diagnostic codes."""

    FILE_READ_ERROR = "FILE_READ_ERROR"
    EMPTY_FILE = "EMPTY_FILE"
    JSON_TRAILING_COMMA = "JSON_TRAILING_COMMA"
    JSON_SYNTAX = "JSON_SYNTAX"
    JSON5_COMPATIBLE = "JSON5_COMPATIBLE"
    INVALID_ROOT = "INVALID_ROOT"
    INVALID_SERVERS = "INVALID_SERVERS"
    INVALID_SERVER_ENTRY = "INVALID_SERVER_ENTRY"
    MISSING_COMMAND = "MISSING_COMMAND"
    PATH_NOT_FOUND = "PATH_NOT_FOUND"
    PATH_NOT_EXECUTABLE = "PATH_NOT_EXECUTABLE"
    PATH_RELATIVE = "PATH_RELATIVE"
    POSSIBLE_PATH_TYPO = "POSSIBLE_PATH_TYPO"
    COMMAND_NOT_FOUND = "COMMAND_NOT_FOUND"
    CWD_NOT_FOUND = "CWD_NOT_FOUND"
    ARG_PATH_NOT_FOUND = "ARG_PATH_NOT_FOUND"
    ENV_VAR_MISSING = "ENV_VAR_MISSING"
    ENV_VAR_EMPTY = "ENV_VAR_EMPTY"
    HARDCODED_SECRET = "HARDCODED_SECRET"


class Diagnostic(BaseModel):
    """A single finding about one configuration file."""

    level: DiagnosticLevel
    code: DiagnosticCode
    message: str
    file: str
    line: Optional[int] = None
    suggestion: Optional[str] = None

    @classmethod
    def error(cls, code: DiagnosticCode, message: str, file: str, **kwargs) -> "Diagnostic":
        """Create an error-level diagnostic."""
        return cls(level=DiagnosticLevel.ERROR, code=code, message=message, file=file, **kwargs)

    @classmethod
    def warning(cls, code: DiagnosticCode, message: str, file: str, **kwargs) -> "Diagnostic":
        """Create a warning-level diagnostic."""
        return cls(level=DiagnosticLevel.WARNING, code=code, message=message, file=file, **kwargs)

    @classmethod
    def info(cls, code: DiagnosticCode, message: str, file: str, **kwargs) -> "Diagnostic":
        """Create an info-level diagnostic."""
        return cls(level=DiagnosticLevel.INFO, code=code, message=message, file=file, **kwargs)

    @property
    def is_error(self) -> bool:
        return self.level == DiagnosticLevel.ERROR

    def get_location(self) -> str:
        """Get ``file:line`` (or just the file when the line is unknown)."""
        if self.line:
            return f"{self.file}:{self.line}"
        return self.file
