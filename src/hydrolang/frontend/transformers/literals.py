"""
Literal Parser - Extracted from HydroTransformer
Handles parsing of all literal types (numbers, strings, booleans, nil)
"""

from typing import Optional

from lark.lexer import Token as LarkToken

from ...shared import Literal, SourceLocation
from ...utils.config import (
    STRING_QUOTE_CHAR, BOOLEAN_TRUE_LITERAL, BOOLEAN_FALSE_LITERAL, NIL_LITERAL,
)


class LiteralParser:
    """Dedicated parser for literal values"""

    @staticmethod
    def parse(token: LarkToken, location: Optional[SourceLocation]) -> Literal:
        """Parse a literal token into a Literal node, dispatching on its type"""
        parser = LiteralParser()
        text = str(token)
        if token.type == 'NUMBER':
            return parser._parse_number(text, location)
        if token.type == 'STRING':
            return parser._parse_string(text, location)
        return parser._parse_keyword(text, location)

    def _parse_keyword(self, text: str, location: Optional[SourceLocation]) -> Literal:
        if text == BOOLEAN_TRUE_LITERAL:
            return Literal(value=True, location=location)
        if text == BOOLEAN_FALSE_LITERAL:
            return Literal(value=False, location=location)
        if text == NIL_LITERAL:
            return Literal(value=None, location=location)
        return Literal(value=text, location=location)

    def _parse_number(self, value_str: str, location: Optional[SourceLocation]) -> Literal:
        """Numbers in expressions are always floating point"""
        return Literal(value=float(value_str), location=location)

    def _parse_string(self, quoted_str: str, location: Optional[SourceLocation]) -> Literal:
        clean_value = quoted_str
        if quoted_str.startswith(STRING_QUOTE_CHAR) and quoted_str.endswith(STRING_QUOTE_CHAR):
            clean_value = quoted_str[1:-1]
        return Literal(value=clean_value, location=location)
