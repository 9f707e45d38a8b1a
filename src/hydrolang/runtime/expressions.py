"""
Expression evaluator.

Evaluates expression trees to numbers. Variable references are not scope
lookups: each one asks the flow evaluator for the referenced node's outflow,
so symbolic expressions and the flow graph share one evaluation domain.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict

import numpy as np

from ..shared.errors import AssignmentUnsupported, HydroImplementationError, OperandTypeError
from ..shared.nodes import (
    Assign, BinaryExpression, Expression, Grouping, Literal, NodeType, UnaryExpression, Variable,
)
from ..shared.types import ARITHMETIC_OPS, COMPARISON_OPS, EQUALITY_OPS, BinaryOp, UnaryOp
from ..utils.config import FALSE_VALUE, TRUE_VALUE
from .environment import EvaluationSteps, OutflowRequest

if TYPE_CHECKING:
    from .flow import FlowEvaluator


def is_number(value: Any) -> bool:
    """Numbers are ints and floats; booleans are not numbers here."""
    return isinstance(value, (int, float, np.floating)) and not isinstance(value, bool)


def is_truthy(value: Any) -> bool:
    """nil and false are falsy; everything else, 0.0 included, is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left: Any, right: Any) -> bool:
    if left is None and right is None:
        return True
    if left is None or right is None:
        return False
    if is_number(left) and is_number(right):
        return float(left) == float(right)
    if type(left) is not type(right):
        return False
    return left == right


def _encode(flag: bool) -> float:
    return TRUE_VALUE if flag else FALSE_VALUE


def _safe_true_divide(left: float, right: float) -> float:
    # IEEE-754 semantics: x/0 -> +-inf, 0/0 -> nan
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.true_divide(np.float64(left), np.float64(right)))


_BINARY_OP_MAP: Dict[BinaryOp, Callable[[float, float], float]] = {
    BinaryOp.ADD: lambda l, r: l + r,
    BinaryOp.SUB: lambda l, r: l - r,
    BinaryOp.MUL: lambda l, r: l * r,
    BinaryOp.DIV: _safe_true_divide,
    BinaryOp.GT: lambda l, r: _encode(l > r),
    BinaryOp.GE: lambda l, r: _encode(l >= r),
    BinaryOp.LT: lambda l, r: _encode(l < r),
    BinaryOp.LE: lambda l, r: _encode(l <= r),
}


class ExpressionEvaluator:
    """
    Evaluates expressions, resolving names through a FlowEvaluator.

    Evaluation is written as steps (generators): a variable reference yields
    an OutflowRequest and resumes with the outflow, so expressions take part
    in the flow evaluator's explicit-stack traversal. Leaf nodes that never
    reference a name are plain functions.
    """

    def __init__(self, flow: "FlowEvaluator"):
        self.flow = flow
        self._leaf_handlers: Dict[NodeType, Callable[[Any], Any]] = {
            NodeType.LITERAL: self._eval_literal,
            NodeType.ASSIGN: self._eval_assign,
        }
        self._handlers: Dict[NodeType, Callable[[Any], EvaluationSteps]] = {
            NodeType.GROUPING: self._eval_grouping,
            NodeType.UNARY_OP: self._eval_unary,
            NodeType.BINARY_OP: self._eval_binary,
            NodeType.VARIABLE: self._eval_variable,
        }

    def evaluate(self, expr: Expression) -> Any:
        """Evaluate ``expr`` to completion, computing referenced outflows as needed."""
        return self.flow.run(self.steps(expr))

    def steps(self, expr: Expression) -> EvaluationSteps:
        leaf = self._leaf_handlers.get(expr.node_type)
        if leaf is not None:
            return leaf(expr)
        handler = self._handlers.get(expr.node_type)
        if handler is None:
            raise HydroImplementationError(f"no evaluation rule for {expr.node_type.value} expressions")
        return (yield from handler(expr))

    def _eval_literal(self, expr: Literal) -> Any:
        if is_number(expr.value):
            return float(expr.value)
        return expr.value

    def _eval_assign(self, expr: Assign) -> Any:
        raise AssignmentUnsupported(expr.name.lexeme, expr.location)

    def _eval_grouping(self, expr: Grouping) -> EvaluationSteps:
        return (yield from self.steps(expr.expression))

    def _eval_unary(self, expr: UnaryExpression) -> EvaluationSteps:
        operand = yield from self.steps(expr.operand)
        if expr.operator is UnaryOp.NOT:
            # Truthy operands become 0.0 and falsy ones 1.0
            return FALSE_VALUE if is_truthy(operand) else TRUE_VALUE
        if not is_number(operand):
            raise OperandTypeError(expr.operator.value, expr.location, plural=False)
        return -float(operand)

    def _eval_binary(self, expr: BinaryExpression) -> EvaluationSteps:
        left = yield from self.steps(expr.left)
        right = yield from self.steps(expr.right)

        if expr.operator in EQUALITY_OPS:
            equal = is_equal(left, right)
            return _encode(equal if expr.operator is BinaryOp.EQ else not equal)

        if expr.operator in ARITHMETIC_OPS or expr.operator in COMPARISON_OPS:
            if not (is_number(left) and is_number(right)):
                raise OperandTypeError(expr.operator.value, expr.location)
            return _BINARY_OP_MAP[expr.operator](float(left), float(right))

        raise HydroImplementationError(f"unhandled binary operator {expr.operator.value}")

    def _eval_variable(self, expr: Variable) -> EvaluationSteps:
        return (yield OutflowRequest(expr.name.lexeme, expr.name.location or expr.location))
