"""
Flow evaluator.

Computes the steady-state outflow of a node by memoized depth-first
traversal of the network. Two rules produce a node's raw value:

- symbolic: the node's expression, evaluated with names resolved as outflows
- accumulation: base_flow * rainfall plus the outflow of every incoming source

A dam registered under the same name is then applied (multiply, then cap).

The traversal runs on an explicit stack rather than the Python call stack:
each node's computation is a generator that yields an OutflowRequest for
every name it depends on and is resumed with that name's outflow (or has the
dependency's error thrown into it). Chain length is therefore bounded by
memory, not by the interpreter's recursion limit.
"""

import logging
from typing import Any, List, Optional

from ..network.model import NetworkModel
from ..shared.errors import CycleDetected, ExpressionTypeMismatch, UndefinedNode
from ..shared.nodes import Expression
from ..shared.source_location import SourceLocation
from .environment import EvaluationState, EvaluationSteps, OutflowRequest
from .expressions import ExpressionEvaluator, is_number

logger = logging.getLogger(__name__)


class FlowEvaluator:
    """
    Graph-aware evaluator for one pass over a NetworkModel.

    The state (memo and in-progress stack) belongs to the evaluator; pass a
    fresh EvaluationState, or call reset(), to start a new pass.
    """

    def __init__(self, model: NetworkModel, state: Optional[EvaluationState] = None):
        self.model = model
        self.state = state if state is not None else EvaluationState()
        self.expressions = ExpressionEvaluator(self)

    def reset(self) -> None:
        self.state.reset()

    def compute_outflow(self, name: str, location: Optional[SourceLocation] = None) -> float:
        """
        Outflow of ``name``.

        ``location`` is where the name was referenced and is used for
        diagnostics; it defaults to the node's first appearance.
        """
        return self.run(self._outflow_steps(name, location))

    def evaluate_numeric(self, expr: Expression, owner: str) -> float:
        """Evaluate ``expr`` on behalf of node ``owner``; the result must be a number."""
        return self.run(self._numeric_steps(expr, owner))

    def run(self, steps: EvaluationSteps) -> Any:
        """
        Drive ``steps`` to completion, servicing its OutflowRequests.

        A failing step pops off the stack and its exception is thrown into
        the step that requested it, exactly where a nested call would have
        raised; the bottom step's result or error is returned or raised.
        """
        stack: List[EvaluationSteps] = [steps]
        reply: Any = None
        error: Optional[Exception] = None

        while stack:
            top = stack[-1]
            try:
                if error is not None:
                    pending, error = error, None
                    request = top.throw(pending)
                else:
                    request = top.send(reply)
            except StopIteration as done:
                stack.pop()
                reply = done.value
                continue
            except Exception as e:
                stack.pop()
                if not stack:
                    raise
                error = e
                continue

            stack.append(self._outflow_steps(request.name, request.location))
            reply = None

        return reply

    # -------------------------------------------------------------------------
    # Evaluation steps
    # -------------------------------------------------------------------------

    def _outflow_steps(self, name: str, location: Optional[SourceLocation]) -> EvaluationSteps:
        cached = self.state.lookup(name)
        if cached is not None:
            logger.debug("Memo hit for %s: %s", name, cached)
            return cached

        if not self.model.is_registered(name):
            raise UndefinedNode(name, location)

        node = self.model.get_node(name)
        dam = self.model.get_dam(name)

        if self.state.is_in_progress(name):
            raise CycleDetected(name, location or _declared_at(node, dam), self.state.cycle_path(name))

        with self.state.computing(name):
            if node is not None and node.symbolic_expr is not None:
                raw = yield from self._numeric_steps(node.symbolic_expr, name)
            else:
                raw = 0.0
                if node is not None:
                    if node.base_flow is not None:
                        raw += node.base_flow * self.model.rainfall
                    for source in node.incoming:
                        raw += yield OutflowRequest(source, node.location)

            value = dam.apply(raw) if dam is not None else raw

        self.state.store(name, value)
        logger.debug("Computed outflow of %s: raw=%s final=%s", name, raw, value)
        return value

    def _numeric_steps(self, expr: Expression, owner: str) -> EvaluationSteps:
        result = yield from self.expressions.steps(expr)
        if not is_number(result):
            raise ExpressionTypeMismatch(owner, result, expr.location)
        return float(result)


def _declared_at(node, dam) -> Optional[SourceLocation]:
    if node is not None and node.location is not None:
        return node.location
    return dam.location if dam is not None else None
