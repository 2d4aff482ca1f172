"""Aggregate check report model."""

from typing import List

from pydantic import BaseModel, Field, computed_field

from .config_file import ConfigDocument, ConfigLocation
from .diagnostic import Diagnostic, DiagnosticLevel
from .probe import ProbeResult


class CheckReport(BaseModel):
    """Everything one doctor run found."""

    locations: List[ConfigLocation] = Field(default_factory=list)
    documents: List[ConfigDocument] = Field(default_factory=list)
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    server_results: List[ProbeResult] = Field(default_factory=list)
    health_checked: bool = False

    @property
    def found_locations(self) -> List[ConfigLocation]:
        return [loc for loc in self.locations if loc.exists]

    @computed_field
    @property
    def error_count(self) -> int:
        """Number of error-level diagnostics; non-zero means a failing run."""
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.ERROR)

    @computed_field
    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.level == DiagnosticLevel.WARNING)

    @computed_field
    @property
    def healthy_count(self) -> int:
        return sum(1 for r in self.server_results if r.healthy)

    def get_exit_code(self) -> int:
        """Exit code for the command line: 1 when any error was found."""
        return 1 if self.error_count > 0 else 0
