"""
Network Builder

Folds a statement sequence into a NetworkModel in one linear pass. No flow
is evaluated here, with one exception: a `var` initializer is evaluated
immediately against the network declared so far.
"""

import logging
import math
from typing import Callable, Dict, Iterable, Optional

from ..runtime.flow import FlowEvaluator
from ..shared.errors import ErrorReporter, HydroError, HydroImplementationError, InvalidNumericLiteral
from ..shared.nodes import (
    DamDeclaration, NodeType, RainfallDeclaration, RiverCombination, RiverCombinationExpr,
    RiverDeclaration, RiverDeclarationWithFlow, RiverFlow, Statement, Token, VariableDeclaration,
)
from .model import Dam, NetworkModel

logger = logging.getLogger(__name__)


def parse_numeric_token(token: Token) -> float:
    """Convert a declaration's numeric token, rejecting anything that is not a finite number."""
    try:
        value = float(token.lexeme)
    except (TypeError, ValueError):
        raise InvalidNumericLiteral(token.lexeme, token.location) from None
    if not math.isfinite(value):
        raise InvalidNumericLiteral(token.lexeme, token.location)
    return value


class NetworkBuilder:
    """
    Single-pass construction of a NetworkModel.

    With a reporter, a failing statement is reported and skipped and the
    remaining statements are still applied. Without one, the first error
    propagates to the caller.
    """

    def __init__(self, reporter: Optional[ErrorReporter] = None):
        self.reporter = reporter
        self._handlers: Dict[NodeType, Callable[[NetworkModel, Statement], None]] = {
            NodeType.RAINFALL_DECL: self._rainfall,
            NodeType.RIVER_DECL: self._river,
            NodeType.RIVER_DECL_WITH_FLOW: self._river_with_flow,
            NodeType.RIVER_FLOW: self._flow,
            NodeType.RIVER_COMBINATION: self._combination,
            NodeType.RIVER_COMBINATION_EXPR: self._combination_expr,
            NodeType.DAM_DECL: self._dam,
            NodeType.VARIABLE_DECL: self._variable,
        }

    def build(self, statements: Iterable[Statement], model: Optional[NetworkModel] = None) -> NetworkModel:
        """Apply every statement in order, lint the result and freeze it."""
        model = model if model is not None else NetworkModel()
        for stmt in statements:
            handler = self._handlers.get(stmt.node_type)
            if handler is None:
                raise HydroImplementationError(f"no construction rule for {stmt.node_type.value} statements")
            try:
                handler(model, stmt)
            except HydroError as e:
                if self.reporter is None:
                    raise
                logger.debug("Skipping %s statement: %s", stmt.node_type.value, e.message)
                self.reporter.report_exception(e)

        self._lint(model)
        model.freeze()
        logger.debug("Built %r", model)
        return model

    # -------------------------------------------------------------------------
    # Statement handlers
    # -------------------------------------------------------------------------

    def _rainfall(self, model: NetworkModel, stmt: RainfallDeclaration) -> None:
        model.set_rainfall(parse_numeric_token(stmt.value))

    def _river(self, model: NetworkModel, stmt: RiverDeclaration) -> None:
        node = model.ensure_node(stmt.name.lexeme, stmt.name.location)
        node.type_name = stmt.type.lexeme

    def _river_with_flow(self, model: NetworkModel, stmt: RiverDeclarationWithFlow) -> None:
        rate = parse_numeric_token(stmt.flow_rate)
        node = model.ensure_node(stmt.name.lexeme, stmt.name.location)
        node.type_name = stmt.type.lexeme
        node.base_flow = rate

    def _flow(self, model: NetworkModel, stmt: RiverFlow) -> None:
        model.ensure_node(stmt.source.lexeme, stmt.source.location)
        model.ensure_node(stmt.target.lexeme, stmt.target.location)
        model.add_edge(stmt.source.lexeme, stmt.target.lexeme)

    def _combination(self, model: NetworkModel, stmt: RiverCombination) -> None:
        model.ensure_node(stmt.name.lexeme, stmt.name.location)
        for source in stmt.sources:
            model.ensure_node(source.lexeme, source.location)
            model.add_edge(source.lexeme, stmt.name.lexeme)

    def _combination_expr(self, model: NetworkModel, stmt: RiverCombinationExpr) -> None:
        # Names inside the expression resolve lazily, so forward references are fine
        node = model.ensure_node(stmt.name.lexeme, stmt.name.location)
        node.symbolic_expr = stmt.expression

    def _dam(self, model: NetworkModel, stmt: DamDeclaration) -> None:
        dam = Dam(
            name=stmt.name.lexeme,
            multiplier=parse_numeric_token(stmt.multiplier) if stmt.multiplier is not None else None,
            cap=parse_numeric_token(stmt.cap) if stmt.cap is not None else None,
            location=stmt.name.location,
        )
        if not model.add_dam(dam):
            model.warn(f"dam `{dam.name}` is already declared; keeping the first declaration")

    def _variable(self, model: NetworkModel, stmt: VariableDeclaration) -> None:
        name = stmt.name.lexeme
        value = None
        if stmt.initializer is not None:
            # Evaluated now, against the network as declared so far
            value = FlowEvaluator(model).evaluate_numeric(stmt.initializer, name)
        node = model.ensure_node(name, stmt.name.location)
        if value is not None:
            node.base_flow = value

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _lint(self, model: NetworkModel) -> None:
        for name in model.dams:
            if name not in model.nodes:
                model.warn(f"dam `{name}` has no river of the same name; its outflow is always 0")
