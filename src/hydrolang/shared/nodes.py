"""
Hydrolang syntax trees.

Two closed families of nodes are produced by the frontend and consumed by the
network builder and the evaluators:

- Expressions: Literal, Grouping, UnaryExpression, BinaryExpression, Variable, Assign
- Statements: RainfallDeclaration, RiverDeclaration, RiverDeclarationWithFlow,
  RiverFlow, RiverCombination, RiverCombinationExpr, DamDeclaration,
  VariableDeclaration

Every node class carries a ``node_type`` tag. Consumers dispatch on the tag
through a handler table instead of a visitor interface; a missing handler is
an implementation error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple, Union

import numpy as np

from .source_location import SourceLocation
from .types import BinaryOp, TokenKind, UnaryOp


class NodeType(Enum):
    """AST node types"""
    PROGRAM = "program"

    # Expressions
    LITERAL = "literal"
    GROUPING = "grouping"
    UNARY_OP = "unary_op"
    BINARY_OP = "binary_op"
    VARIABLE = "variable"
    ASSIGN = "assign"

    # Statements
    RAINFALL_DECL = "rainfall_decl"
    RIVER_DECL = "river_decl"
    RIVER_DECL_WITH_FLOW = "river_decl_with_flow"
    RIVER_FLOW = "river_flow"
    RIVER_COMBINATION = "river_combination"
    RIVER_COMBINATION_EXPR = "river_combination_expr"
    DAM_DECL = "dam_decl"
    VARIABLE_DECL = "variable_decl"


# Literal payloads: numbers, strings, booleans and nil (None)
LiteralValue = Union[float, int, str, bool, None]

# Range printed as a plain decimal; outside it numbers use scientific notation
_PLAIN_MIN = 1e-3
_PLAIN_MAX = 1e7


@dataclass(frozen=True)
class Token:
    """A lexical token kept verbatim inside statements (names and numeric literals)."""
    kind: TokenKind
    lexeme: str
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        return self.lexeme


def identifier(name: str, location: Optional[SourceLocation] = None) -> Token:
    return Token(TokenKind.IDENTIFIER, name, location)


def number(lexeme: Union[str, float, int], location: Optional[SourceLocation] = None) -> Token:
    return Token(TokenKind.NUMBER, str(lexeme), location)


class ASTNode:
    """Base class for all syntax tree nodes"""
    node_type: ClassVar[NodeType]


class Expression(ASTNode):
    """Base class for expressions"""


class Statement(ASTNode):
    """Base class for statements"""


# =============================================================================
# EXPRESSIONS
# =============================================================================

@dataclass
class Literal(Expression):
    """Literal value (number, string, boolean, nil)"""
    value: LiteralValue
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.LITERAL

    def __str__(self) -> str:
        if self.value is None:
            return "nil"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return f'"{self.value}"'
        return format_number(self.value)


@dataclass
class Grouping(Expression):
    """Parenthesised sub-expression"""
    expression: Expression
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.GROUPING

    def __str__(self) -> str:
        return f"({self.expression})"


@dataclass
class UnaryExpression(Expression):
    """Unary operation (-x, !x)"""
    operator: UnaryOp
    operand: Expression
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.UNARY_OP

    def __str__(self) -> str:
        return f"{self.operator.value}{self.operand}"


@dataclass
class BinaryExpression(Expression):
    """Binary operation (a + b, a == b, etc.)"""
    left: Expression
    operator: BinaryOp
    right: Expression
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.BINARY_OP

    def __str__(self) -> str:
        return f"{self.left} {self.operator.value} {self.right}"


@dataclass
class Variable(Expression):
    """Reference to another node of the network by name"""
    name: Token
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.VARIABLE

    def __str__(self) -> str:
        return self.name.lexeme


@dataclass
class Assign(Expression):
    """Assignment (name = value); accepted by the grammar, rejected by evaluation"""
    name: Token
    value: Expression
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.ASSIGN

    def __str__(self) -> str:
        return f"{self.name.lexeme} = {self.value}"


# =============================================================================
# STATEMENTS
# =============================================================================

@dataclass
class RainfallDeclaration(Statement):
    """rainfall = <mm>;"""
    value: Token
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.RAINFALL_DECL


@dataclass
class RiverDeclaration(Statement):
    """river <name> = <type>;  (type is descriptive, e.g. root or output)"""
    name: Token
    type: Token
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.RIVER_DECL


@dataclass
class RiverDeclarationWithFlow(Statement):
    """river <name> = <type> with <rate>;"""
    name: Token
    type: Token
    flow_rate: Token
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.RIVER_DECL_WITH_FLOW


@dataclass
class RiverFlow(Statement):
    """river <source> -> <target>;"""
    source: Token
    target: Token
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.RIVER_FLOW


@dataclass
class RiverCombination(Statement):
    """river <name> combine <a>, <b>, ...;"""
    name: Token
    sources: Tuple[Token, ...]
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.RIVER_COMBINATION


@dataclass
class RiverCombinationExpr(Statement):
    """river <name> = <expr>;"""
    name: Token
    expression: Expression
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.RIVER_COMBINATION_EXPR


@dataclass
class DamDeclaration(Statement):
    """dam <name> [with multiplier <m>, cap <c>];"""
    name: Token
    multiplier: Optional[Token] = None
    cap: Optional[Token] = None
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.DAM_DECL


@dataclass
class VariableDeclaration(Statement):
    """var <name> [= <expr>];"""
    name: Token
    initializer: Optional[Expression] = None
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.VARIABLE_DECL


@dataclass
class Program(ASTNode):
    """Program root node"""
    statements: List[Statement] = field(default_factory=list)
    location: Optional[SourceLocation] = None
    node_type: ClassVar[NodeType] = NodeType.PROGRAM


def format_number(value: Union[float, int]) -> str:
    """
    Render a number the way the language prints it.

    Magnitudes in [1e-3, 1e7) print as plain decimals, others in scientific
    form with a capital E (``1.0E10``, ``2.5E-4``), and a trailing ``.0`` is
    dropped: ``6`` but ``1.0E10``. Non-finite values print as ``Infinity``,
    ``-Infinity`` and ``NaN``.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    magnitude = abs(value)
    if magnitude == 0.0 or _PLAIN_MIN <= magnitude < _PLAIN_MAX:
        text = repr(value)
    else:
        mantissa, exponent = np.format_float_scientific(value, unique=True, trim='0').split('e')
        text = f"{mantissa}E{int(exponent)}"

    if text.endswith(".0"):
        text = text[:-2]
    return text
