"""
Runtime

Top-level evaluation pass: computes the outflow of every flow node in order
of first appearance. A failure is recorded against the node being evaluated
and the pass moves on to the next one.
"""

import logging
from typing import Dict, Optional

from ..network.model import Dam, NetworkModel
from ..shared.errors import ErrorReporter, HydroError
from ..utils.config import DEFAULT_RAINFALL
from .environment import EvaluationState
from .flow import FlowEvaluator

logger = logging.getLogger(__name__)


class ExecutionResult:
    """
    Result of one evaluation pass.

    - outflows: node name -> outflow, for nodes that evaluated successfully
    - errors: node name -> the error that stopped it
    - dams: dam name -> effective parameters
    """
    def __init__(
        self,
        outflows: Optional[Dict[str, float]] = None,
        errors: Optional[Dict[str, HydroError]] = None,
        dams: Optional[Dict[str, Dam]] = None,
        rainfall: float = DEFAULT_RAINFALL,
    ):
        self.outflows = outflows if outflows is not None else {}
        self.errors = errors if errors is not None else {}
        self.dams = dams if dams is not None else {}
        self.rainfall = rainfall

    @property
    def success(self) -> bool:
        """Whether every node evaluated (no error)"""
        return not self.errors

    def __repr__(self) -> str:
        return f"ExecutionResult(outflows={self.outflows!r}, errors={sorted(self.errors)!r})"


class HydroRuntime:
    """Runs evaluation passes over frozen network models."""

    def execute(self, model: NetworkModel, reporter: Optional[ErrorReporter] = None) -> ExecutionResult:
        """
        Evaluate every flow node of ``model`` in a fresh pass.

        Dam-only names are not evaluated on their own; they only shape the
        value of the same-named node.
        """
        model.freeze()
        evaluator = FlowEvaluator(model, EvaluationState())
        outflows: Dict[str, float] = {}
        errors: Dict[str, HydroError] = {}

        for name in model.flow_node_names():
            try:
                outflows[name] = evaluator.compute_outflow(name)
            except HydroError as e:
                logger.debug("Evaluation of %s failed: %s", name, e.message)
                errors[name] = e
                if reporter is not None:
                    reporter.report_exception(e)

        return ExecutionResult(
            outflows=outflows,
            errors=errors,
            dams=model.dam_parameters(),
            rainfall=model.rainfall,
        )
