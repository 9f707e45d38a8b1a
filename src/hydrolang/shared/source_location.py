"""
Source Location (Span)

Every statement, token and expression carries one so that construction and
evaluation errors can point back at the declaration that caused them.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Position of a node in a source file.

    - File, line, column (1-based, as reported by the lexer)
    - Optional end line/column for underlining a whole span
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column"""
        return f"{self.file}:{self.line}:{self.column}"
