"""
Operator and token kinds shared by the frontend and the evaluators.
"""

from enum import Enum


class BinaryOp(Enum):
    """Binary operators - compile-time checked enum"""
    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"

    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="


class UnaryOp(Enum):
    """Unary operators - compile-time checked enum"""
    NOT = "!"
    NEG = "-"


class TokenKind(Enum):
    """Kinds of lexical tokens carried inside statement trees"""
    IDENTIFIER = "identifier"
    NUMBER = "number"


ARITHMETIC_OPS = frozenset({BinaryOp.ADD, BinaryOp.SUB, BinaryOp.MUL, BinaryOp.DIV})
COMPARISON_OPS = frozenset({BinaryOp.LT, BinaryOp.LE, BinaryOp.GT, BinaryOp.GE})
EQUALITY_OPS = frozenset({BinaryOp.EQ, BinaryOp.NE})
