"""JSON syntax validation with line/column fault localization."""

import json
import re
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

import pyjson5

from ..models import ConfigDocument, ContextLine, Diagnostic, DiagnosticCode, ErrorContext

# A comma followed, ignoring whitespace, by a closing bracket or brace
_CLOSER_AFTER_WHITESPACE = re.compile(r"\s*[\]}]")

# Lines shown before and after the offending line
CONTEXT_LINES_BEFORE = 2
CONTEXT_LINES_AFTER = 2


def offset_to_line_column(text: str, offset: int) -> Tuple[int, int]:
    """Convert a character offset into a 1-based (line, column) pair."""
    lines = text.split("\n")
    position = 0
    for index, line in enumerate(lines):
        if position + len(line) + 1 > offset:
            return index + 1, offset - position + 1
        position += len(line) + 1

    return len(lines), len(lines[-1]) + 1


def _unquoted(text: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(offset, char)`` for every character outside string literals."""
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
            continue
        yield index, char


def find_trailing_commas(text: str) -> List[int]:
    """Return the offsets of every trailing comma outside string literals."""
    return [
        index
        for index, char in _unquoted(text)
        if char == "," and _CLOSER_AFTER_WHITESPACE.match(text, index + 1)
    ]


class _NonFiniteConstant(ValueError):
    """Raised for ``NaN``/``Infinity``, which Python's json accepts but JSON does not."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


def _reject_constant(name: str) -> Any:
    raise _NonFiniteConstant(name)


def _constant_error(text: str, name: str) -> json.JSONDecodeError:
    """Locate the first unquoted occurrence of a rejected constant."""
    position = next(
        (index for index, _ in _unquoted(text) if text.startswith(name, index)), 0
    )
    return json.JSONDecodeError(f"Invalid constant {name}", text, position)


def build_error_context(text: str, line: int, column: int) -> ErrorContext:
    """Build the window of numbered lines surrounding an error."""
    lines = text.split("\n")
    start = max(0, line - 1 - CONTEXT_LINES_BEFORE)
    end = min(len(lines) - 1, line - 1 + CONTEXT_LINES_AFTER)

    window = [
        ContextLine(line_number=index + 1, text=lines[index].rstrip("\r"))
        for index in range(start, end + 1)
    ]
    line_text = lines[line - 1].rstrip("\r") if 0 < line <= len(lines) else ""

    return ErrorContext(line=line, column=column, line_text=line_text, window=window)


def _json5_hint(text: str, file: str) -> Optional[Diagnostic]:
    """Note when text that is not strict JSON is still valid JSON5."""
    try:
        pyjson5.loads(text)
    except pyjson5.Json5Exception:
        return None

    return Diagnostic.info(
        DiagnosticCode.JSON5_COMPATIBLE,
        "File is valid JSON5 but not strict JSON",
        file,
        suggestion="Some clients accept JSON5/JSONC, but most MCP clients require strict JSON",
    )


def validate_json_text(text: str, file: str) -> ConfigDocument:
    """Parse config text, localizing any syntax error.

    Args:
        text: Raw file contents
        file: Path reported in diagnostics

    Returns:
        A ConfigDocument with a mapping on success, or diagnostics and an
        ErrorContext on failure
    """
    if not text.strip():
        return ConfigDocument(
            path=file,
            raw_text=text,
            mapping={},
            diagnostics=[
                Diagnostic.warning(DiagnosticCode.EMPTY_FILE, "Config file is empty", file)
            ],
        )

    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as err:
        return _syntax_failure(text, file, err)
    except _NonFiniteConstant as err:
        return _syntax_failure(text, file, _constant_error(text, err.name))

    if not isinstance(parsed, dict):
        return ConfigDocument(
            path=file,
            raw_text=text,
            diagnostics=[
                Diagnostic.error(
                    DiagnosticCode.INVALID_ROOT,
                    f"Config must be a JSON object, got {type(parsed).__name__}",
                    file,
                    line=1,
                    suggestion='Wrap the configuration in an object, e.g. {"mcpServers": {...}}',
                )
            ],
        )

    return ConfigDocument(path=file, raw_text=text, mapping=parsed)


def _syntax_failure(text: str, file: str, err: json.JSONDecodeError) -> ConfigDocument:
    diagnostics: List[Diagnostic] = []
    trailing_commas = find_trailing_commas(text)

    if trailing_commas:
        # The last trailing comma in the document is reported, even when there are several
        offset = trailing_commas[-1]
        line, column = offset_to_line_column(text, offset)
        diagnostics.append(
            Diagnostic.error(
                DiagnosticCode.JSON_TRAILING_COMMA,
                "Trailing comma detected (not allowed in JSON)",
                file,
                line=line,
                suggestion="Remove the comma before the closing bracket/brace",
            )
        )
    else:
        line, column = offset_to_line_column(text, err.pos)
        diagnostics.append(
            Diagnostic.error(
                DiagnosticCode.JSON_SYNTAX,
                f"{err.msg} at line {line}, column {column}",
                file,
                line=line,
            )
        )

    hint = _json5_hint(text, file)
    if hint:
        diagnostics.append(hint)

    return ConfigDocument(
        path=file,
        raw_text=text,
        diagnostics=diagnostics,
        error_context=build_error_context(text, line, column),
    )


def validate_json_syntax(config_path: Path) -> ConfigDocument:
    """Read and validate one config file."""
    file = str(config_path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        return ConfigDocument(
            path=file,
            diagnostics=[
                Diagnostic.error(DiagnosticCode.FILE_READ_ERROR, f"Cannot read file: {e}", file)
            ],
        )

    return validate_json_text(content, file)
