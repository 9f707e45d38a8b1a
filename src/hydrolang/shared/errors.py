"""
Error Reporting

Diagnostics for construction and evaluation failures, rendered rustc-style
with a source snippet, plus the exception hierarchy raised by the core.
"""

import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

from .source_location import SourceLocation


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    explicit = os.environ.get("HYDROLANG_COLOR", "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    return sys.stderr.isatty() or explicit in ("1", "true", "yes", "always")

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """A single diagnostic collected by the ErrorReporter."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic.

    Example output (plain, no color)::

        error[E0391]: cycle detected while computing `B`
         --> basin.hyd:3:1
          |
        3 | river B combine A, B;
          | ^^^^^ `B` depends on itself
    """
    out: List[str] = []

    code_str = f"[{error.code}]" if error.code else ""
    out.append(
        _style(f"error{code_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.location is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location
    source = source_files.get(loc.file)
    if source is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(loc))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")
    gw = max(len(str(loc.line)), 1)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + str(loc))
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))

    idx = loc.line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""
    out.append(_style(str(loc.line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = max(loc.column, 1) - 1
    if loc.end_line == loc.line and loc.end_column > loc.column:
        span_len = loc.end_column - loc.column
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + "^" * max(1, span_len)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, _RED, color=color)
    )

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Guess token length when end_column is unavailable."""
    if col_start >= len(code_line):
        return 1
    length = 0
    for ch in code_line[col_start:]:
        if ch in (" ", "\t", ";", ",", ")"):
            break
        length += 1
    return max(1, length)


def _append_annotations(out: List[str], error: Error, gw: int, color: bool) -> None:
    if not (error.help or error.note):
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """Collects diagnostics for one run and formats them against the sources."""

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files = source_files if source_files is not None else {}
        self.errors: List[Error] = []

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        code: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.errors.append(Error(
            message=message,
            location=location,
            code=code,
            help=help,
            note=note,
            label=label,
        ))

    def report_exception(self, exc: "HydroError") -> None:
        """Record a raised HydroError as a diagnostic."""
        if isinstance(exc, HydroSourceError):
            self.report_error(
                exc.message, exc.location, code=exc.error_code,
                help=exc.help_text, note=exc.note_text, label=exc.label_text,
            )
        else:
            self.report_error(exc.message, exc.location)

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        parts = [self.format_error(e, color=color) for e in self.errors]
        use_color = color if color is not None else _use_color()
        count = len(self.errors)
        summary = f"{count} error{'s' if count != 1 else ''} reported"
        parts.append(
            _style("error", _BOLD, _RED, color=use_color)
            + _style(f": {summary}", _BOLD, color=use_color)
        )
        return "\n\n".join(parts)

    def has_errors(self) -> bool:
        return len(self.errors) > 0


# ============================================================================
# Exception Classes
# ============================================================================

class HydroError(Exception):
    """Base exception for all Hydrolang errors"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.message} ({self.location})"
        return self.message


class HydroSourceError(HydroError):
    """
    Error attributable to a name or token in the user's program.

    Carries an error code and optional help/note text for the reporter.
    """
    error_code = "E0001"

    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 help: Optional[str] = None,
                 note: Optional[str] = None,
                 label: Optional[str] = None):
        super().__init__(message, location)
        self.help_text = help
        self.note_text = note
        self.label_text = label

    def render(self, source_code: Optional[str] = None, color: bool = False) -> str:
        source_files: Dict[str, str] = {}
        if source_code is not None and self.location:
            source_files[self.location.file] = source_code
        err = Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
            note=self.note_text,
            label=self.label_text,
        )
        return _format_diagnostic(err, source_files, color=color)


class ParseError(HydroSourceError):
    """Parse error with source location"""
    error_code = "E0002"

    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None):
        super().__init__(message, location)
        self.source_file = source_file


class UndefinedNode(HydroSourceError):
    """Reference to a name never declared as river, dam or variable."""
    error_code = "E0425"

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(
            f"undefined river, dam or variable `{name}`",
            location,
            label="not declared anywhere in this network",
        )
        self.name = name


class CycleDetected(HydroSourceError):
    """A dependency chain re-entered a name that is still being computed."""
    error_code = "E0391"

    def __init__(self, name: str, location: Optional[SourceLocation] = None,
                 path: Optional[List[str]] = None):
        super().__init__(
            f"cycle detected while computing `{name}`",
            location,
            label=f"`{name}` depends on itself",
            note=f"dependency chain: {' -> '.join(path)}" if path else None,
        )
        self.name = name
        self.path = list(path) if path else [name]


class ExpressionTypeMismatch(HydroSourceError):
    """A symbolic expression produced a non-numeric value."""
    error_code = "E0308"

    def __init__(self, name: str, value: object = None, location: Optional[SourceLocation] = None):
        super().__init__(
            f"expression for `{name}` must evaluate to a number, found {_describe(value)}",
            location,
        )
        self.name = name
        self.value = value


class OperandTypeError(HydroSourceError):
    """An arithmetic or comparison operator received a non-numeric operand."""
    error_code = "E0369"

    def __init__(self, operator: str, location: Optional[SourceLocation] = None, plural: bool = True):
        message = "Operands must be numbers." if plural else "Operand must be a number."
        super().__init__(message, location, label=f"operator `{operator}`")
        self.operator = operator


class InvalidNumericLiteral(HydroSourceError):
    """A declaration's numeric token could not be parsed."""
    error_code = "E0600"

    def __init__(self, lexeme: str, location: Optional[SourceLocation] = None):
        super().__init__(f"invalid numeric literal `{lexeme}`", location)
        self.lexeme = lexeme


class AssignmentUnsupported(HydroSourceError):
    """Assignment expressions have no meaning inside a flow network."""
    error_code = "E0070"

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(
            f"assignment to `{name}` is not supported in flow expressions",
            location,
            help="declare the value with `var` or `river` instead",
        )
        self.name = name


class HydroImplementationError(Exception):
    """
    Error in the Python implementation (not the user's program), e.g. a
    syntax tree node kind without a handler.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"


def _describe(value: object) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "a boolean"
    if isinstance(value, str):
        return "a string"
    return type(value).__name__
