"""Config file domain models."""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .diagnostic import Diagnostic, DiagnosticLevel


def shorten_path(path: str, home: Optional[Path] = None) -> str:
    """Replace the home directory prefix of ``path`` with ``~``."""
    try:
        home = home or Path.home()
        candidate = Path(path)
        if candidate.is_relative_to(home):
            return f"~/{candidate.relative_to(home)}"
    except (ValueError, RuntimeError):
        pass

    return path


class ConfigScope(str, Enum):
    """Whether a config file applies globally or to one project."""

    GLOBAL = "global"
    PROJECT = "project"


class ConfigLocation(BaseModel):
    """A candidate configuration file location for one client."""

    client: str
    scope: ConfigScope = ConfigScope.GLOBAL
    path: str
    exists: bool = False

    def get_display_path(self) -> str:
        """Get shortened display path."""
        return shorten_path(self.path)


class ContextLine(BaseModel):
    """One numbered line of an error context window."""

    line_number: int
    text: str


class ErrorContext(BaseModel):
    """Localized description of a JSON parse failure."""

    line: int
    column: int
    line_text: str
    window: List[ContextLine] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_window(self) -> "ErrorContext":
        numbers = [entry.line_number for entry in self.window]
        if numbers != sorted(numbers):
            raise ValueError("context window must be ordered by line number")
        if numbers and self.line not in numbers:
            raise ValueError("context window must include the offending line")
        return self


class ConfigDocument(BaseModel):
    """Parsed (or failed-to-parse) contents of one configuration file."""

    model_config = ConfigDict(frozen=True)

    path: str
    raw_text: Optional[str] = None
    mapping: Optional[Dict[str, Any]] = None
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    error_context: Optional[ErrorContext] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "ConfigDocument":
        if self.mapping is not None and self.error_context is not None:
            raise ValueError("a parsed document cannot carry an error context")
        return self

    @property
    def valid(self) -> bool:
        """True when the document parsed into a mapping."""
        return self.mapping is not None

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.ERROR)
