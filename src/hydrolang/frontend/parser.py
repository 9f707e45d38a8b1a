"""
Parser

Turns Hydrolang source text into a Program of statement trees.
"""

import logging
from pathlib import Path

from lark import Lark
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from ..shared.errors import HydroError, ParseError
from ..shared.nodes import Program
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE, DEFAULT_SOURCE_NAME, GRAMMAR_FILE_NAME
from .transformers.base import HydroTransformer

logger = logging.getLogger(__name__)


class Parser:
    """
    Parser backed by a cached LALR Lark grammar.

    - Takes source code, returns a Program
    - Preserves source locations on every node
    - Converts Lark errors to ParseError
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / GRAMMAR_FILE_NAME
        self.parser = Lark.open(
            str(grammar_path),
            start='program',
            parser='lalr',              # Required for caching
            cache=cache_file,
            propagate_positions=True,   # Enable position tracking for error reporting
            maybe_placeholders=False,
        )
        self.transformer = HydroTransformer()

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_NAME) -> Program:
        """Parse source code to a Program."""
        try:
            self.transformer.current_file = source_file
            tree = self.parser.parse(source)
            program = self.transformer.transform(tree)
            logger.debug("Parsed %d statement(s) from %s", len(program.statements), source_file)
            return program

        except (UnexpectedToken, UnexpectedCharacters, UnexpectedInput) as e:
            location = None
            line = getattr(e, 'line', None)
            column = getattr(e, 'column', None)
            if isinstance(line, int) and isinstance(column, int) and line > 0:
                location = SourceLocation(file=source_file, line=line, column=column)
            raise ParseError(f"Parse error: {_describe_unexpected(e)}", source_file, location) from e

        except VisitError as e:
            # Errors raised inside transformer callbacks arrive wrapped by Lark
            if isinstance(e.orig_exc, HydroError):
                raise e.orig_exc from e
            raise


def _describe_unexpected(error: UnexpectedInput) -> str:
    if isinstance(error, UnexpectedToken):
        expected = ", ".join(sorted(error.expected)) if error.expected else "end of input"
        return f"unexpected token {error.token!r}, expected one of: {expected}"
    if isinstance(error, UnexpectedCharacters):
        return f"unexpected character {error.char!r}"
    return "unexpected end of input"
