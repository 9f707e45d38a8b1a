"""
Shared components: syntax trees, operator kinds, source locations and errors.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, HydroError, HydroSourceError, HydroImplementationError, ParseError,
    UndefinedNode, CycleDetected, ExpressionTypeMismatch, OperandTypeError,
    InvalidNumericLiteral, AssignmentUnsupported,
)
from .types import BinaryOp, UnaryOp, TokenKind
from .nodes import (
    ASTNode, Expression, Statement, Program, NodeType, Token,
    Literal, Grouping, UnaryExpression, BinaryExpression, Variable, Assign,
    RainfallDeclaration, RiverDeclaration, RiverDeclarationWithFlow, RiverFlow,
    RiverCombination, RiverCombinationExpr, DamDeclaration, VariableDeclaration,
    identifier, number, format_number,
)
