"""
Expression Parser - Extracted from HydroTransformer
Handles left-associative binary operator chains
"""

from typing import Any, Callable, Sequence

from lark.lexer import Token as LarkToken
from typing_extensions import TypeAlias

from ...shared import BinaryExpression, BinaryOp, Expression, SourceLocation

# Type aliases for better clarity
LarkMeta: TypeAlias = Any  # Lark's internal Meta object
LocationExtractor: TypeAlias = Callable[[LarkMeta], SourceLocation]


class BinaryExpressionParser:
    """Dedicated parser for binary expressions"""

    def __init__(self, location_extractor: LocationExtractor) -> None:
        self.extract_location = location_extractor

    def fold_left(self, meta: LarkMeta, args: Sequence[Any]) -> Expression:
        """
        Fold `operand (op operand)*` into a left-leaning tree.

        a - b - c  ->  (a - b) - c
        """
        result = args[0]
        for operator, right in zip(args[1::2], args[2::2]):
            result = self._create_binary_expression(meta, result, operator, right)
        return result

    def _create_binary_expression(self, meta: LarkMeta, left: Expression,
                                  operator: LarkToken, right: Expression) -> BinaryExpression:
        """Create a binary expression located at its operator"""
        location = self.extract_location(meta)
        location = SourceLocation(
            file=location.file,
            line=operator.line,
            column=operator.column,
            end_line=operator.end_line or 0,
            end_column=operator.end_column or 0,
        )
        return BinaryExpression(
            left=left,
            operator=BinaryOp(str(operator)),
            right=right,
            location=location,
        )
