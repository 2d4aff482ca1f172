"""Terminal reporter for doctor results."""

import io
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.text import Text

from ..models import (
    CheckReport,
    ConfigDocument,
    ConfigScope,
    Diagnostic,
    DiagnosticLevel,
    ErrorContext,
    ProbeLogEntry,
    ProbeResult,
)
from ..models.config_file import shorten_path

MAX_SEARCHED_SHOWN = 5


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


class Reporter:
    """Renders a CheckReport with rich."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def _print(self, *objects: Any, **kwargs: Any) -> None:
        # Paths and messages come from user files; never interpret them as markup
        kwargs.setdefault("markup", False)
        kwargs.setdefault("highlight", False)
        self.console.print(*objects, **kwargs)

    def print_header(self, text: str) -> None:
        self._print(f"\n{text}\n", style="bold")

    def print_configs_found(self, report: CheckReport) -> None:
        found = report.found_locations
        not_found = [loc for loc in report.locations if not loc.exists]

        if not found:
            self._print("No MCP configuration files found.\n", style="yellow")
            self._print("Looked in:", style="bright_black")
            for loc in not_found[:MAX_SEARCHED_SHOWN]:
                self._print(f"  {loc.client}: {loc.get_display_path()}", style="bright_black")
            if len(not_found) > MAX_SEARCHED_SHOWN:
                self._print(
                    f"  ... and {len(not_found) - MAX_SEARCHED_SHOWN} more locations",
                    style="bright_black",
                )
            return

        self._print(f"Found {_plural(len(found), 'config file')}:\n", style="green")
        for loc in found:
            line = Text("  ")
            line.append(loc.client, style="cyan")
            if loc.scope == ConfigScope.PROJECT:
                line.append(" (project)", style="bright_black")
            self._print(line)
            self._print(f"  {loc.get_display_path()}\n", style="bright_black")

    def render_error_context(self, context: ErrorContext) -> Text:
        """Render numbered source lines with a caret under the error column."""
        width = len(str(context.window[-1].line_number)) if context.window else 1
        text = Text()
        for entry in context.window:
            is_error = entry.line_number == context.line
            marker = ">" if is_error else " "
            text.append(
                f"  {marker} {entry.line_number:>{width}} | ",
                style="red" if is_error else "bright_black",
            )
            text.append(entry.text + "\n", style="bold" if is_error else "")
            if is_error:
                text.append(" " * (width + 7 + max(context.column - 1, 0)) + "^\n", style="red")
        return text

    def _print_diagnostic(
        self, diagnostic: Diagnostic, style: str, context: Optional[ErrorContext]
    ) -> None:
        location = shorten_path(diagnostic.file)
        if diagnostic.line:
            location += f":{diagnostic.line}"
        self._print(f"  {location}", style=style)
        self._print(f"  {diagnostic.message}", style=style)
        if context is not None and diagnostic.line == context.line:
            self._print(self.render_error_context(context), end="")
        if diagnostic.suggestion:
            self._print(f"  💡 {diagnostic.suggestion}", style="bright_black")
        self._print()

    def print_validation_results(
        self, diagnostics: Sequence[Diagnostic], documents: Sequence[ConfigDocument] = ()
    ) -> None:
        contexts = {doc.path: doc.error_context for doc in documents if doc.error_context}
        errors = [d for d in diagnostics if d.level == DiagnosticLevel.ERROR]
        warnings = [d for d in diagnostics if d.level == DiagnosticLevel.WARNING]
        infos = [d for d in diagnostics if d.level == DiagnosticLevel.INFO]

        if errors:
            self._print(f"❌ {_plural(len(errors), 'Error')}\n", style="red")
            for d in errors:
                self._print_diagnostic(d, "red", contexts.get(d.file))

        if warnings:
            self._print(f"⚠️  {_plural(len(warnings), 'Warning')}\n", style="yellow")
            for d in warnings:
                self._print_diagnostic(d, "yellow", None)

        for d in infos:
            self._print_diagnostic(d, "blue", None)

    def print_server_results(self, results: Sequence[ProbeResult]) -> None:
        if not results:
            self._print("No servers to test.\n", style="bright_black")
            return

        healthy = [r for r in results if r.healthy]
        unhealthy = [r for r in results if not r.healthy]

        summary = Text("🔌 Server Health: ")
        summary.append(f"{len(healthy)} healthy", style="green")
        summary.append(", ")
        summary.append(f"{len(unhealthy)} failed", style="red" if unhealthy else "bright_black")
        self._print(summary)
        self._print()

        for r in healthy:
            line = Text(f"  ✓ {r.name}", style="green")
            if r.elapsed_ms is not None:
                line.append(f" ({r.elapsed_ms:.0f}ms)", style="bright_black")
            self._print(line)
            if r.note:
                self._print(f"    {r.note}", style="bright_black")

        for r in unhealthy:
            self._print(f"  ✗ {r.name}", style="red")
            if r.reason:
                self._print(f"    {r.reason}", style="bright_black")

        self._print()

    def print_summary(self, report: CheckReport) -> None:
        errors = report.error_count
        warnings = report.warning_count
        total = len(report.server_results)
        healthy = report.healthy_count

        self._print("─" * 50, style="bright_black")

        if errors == 0 and warnings == 0:
            self._print("\n✓ All configurations valid", style="green")
        elif errors == 0:
            self._print(
                f"\n⚠️  Configuration valid with {_plural(warnings, 'warning')}", style="yellow"
            )
        else:
            verb = "needs" if errors == 1 else "need"
            self._print(
                f"\n❌ Found {_plural(errors, 'error')} that {verb} fixing", style="red"
            )

        if total:
            if healthy == total:
                self._print(f"✓ All {_plural(total, 'server')} responding", style="green")
            else:
                self._print(f"⚠️  {healthy}/{total} servers responding", style="yellow")

        self._print()

    def print_report(self, report: CheckReport) -> None:
        """Render a full report."""
        self.print_header("🩺 MCP Doctor")
        self.print_configs_found(report)
        if not report.found_locations:
            return

        self.print_validation_results(report.diagnostics, report.documents)
        if report.health_checked:
            self.print_server_results(report.server_results)
        self.print_summary(report)

    def print_log_entry(self, entry: ProbeLogEntry) -> None:
        """Print one probe event as it happens (verbose mode)."""
        line = Text(f"  · {entry.get_display_name()}", style="bright_black")
        if entry.message:
            line.append(f" {entry.message}", style="bright_black")
        if entry.error:
            line.append(f" {entry.error}", style="red")
        self._print(line)

    def print_json(self, report: CheckReport) -> None:
        """Print the report as JSON."""
        exclude = {"documents": {"__all__": {"raw_text"}}}
        self.console.print_json(report.model_dump_json(exclude=exclude))


def render_to_text(report: CheckReport, width: int = 100) -> str:
    """Render a report to plain text (used by tests and non-terminal output)."""
    console = Console(file=io.StringIO(), width=width, record=True, color_system=None)
    Reporter(console).print_report(report)
    return console.export_text()


