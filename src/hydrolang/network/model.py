"""
Network Model

The declared structure of a river network: flow nodes keyed by name, dams
keyed by name (a separate keyspace) and the single rainfall scalar.

A model is populated once by the NetworkBuilder and then frozen; evaluation
only ever reads it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ..shared.errors import HydroImplementationError
from ..shared.nodes import Expression
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_RAINFALL

logger = logging.getLogger(__name__)


@dataclass
class FlowNode:
    """
    A named vertex of the network (a river or a plain variable).

    Outflow is either the symbolic expression's value or, when there is none,
    ``base_flow * rainfall`` plus the outflow of every incoming source.
    """
    name: str
    base_flow: Optional[float] = None
    symbolic_expr: Optional[Expression] = None
    incoming: List[str] = field(default_factory=list)
    type_name: Optional[str] = None
    location: Optional[SourceLocation] = None

    @property
    def is_symbolic(self) -> bool:
        return self.symbolic_expr is not None


@dataclass(frozen=True)
class Dam:
    """
    A post-processing modifier applied to the raw value of the same-named node.

    The multiplier is applied first, then the cap; with neither set the dam
    passes values through unchanged.
    """
    name: str
    multiplier: Optional[float] = None
    cap: Optional[float] = None
    location: Optional[SourceLocation] = None

    def apply(self, value: float) -> float:
        if self.multiplier is not None:
            value = value * self.multiplier
        if self.cap is not None and value > self.cap:
            value = self.cap
        return value

    @property
    def is_pass_through(self) -> bool:
        return self.multiplier is None and self.cap is None


class NetworkFrozenError(HydroImplementationError):
    """Raised when a frozen model is asked to change"""
    def __init__(self, what: str):
        super().__init__(f"cannot {what}: network model is frozen once evaluation may begin", "E9001")


class NetworkModel:
    """
    Process-scoped container built once per run.

    - ``nodes``: name -> FlowNode, in order of first appearance
    - ``dams``: name -> Dam, in order of declaration
    - ``rainfall``: last declared value wins, defaults to 1.0
    """

    def __init__(self, rainfall: float = DEFAULT_RAINFALL):
        self.rainfall: float = rainfall
        self.nodes: Dict[str, FlowNode] = {}
        self.dams: Dict[str, Dam] = {}
        self.warnings: List[str] = []
        self._frozen = False

    # -------------------------------------------------------------------------
    # Construction (only before freeze)
    # -------------------------------------------------------------------------

    def _check_mutable(self, what: str) -> None:
        if self._frozen:
            raise NetworkFrozenError(what)

    def set_rainfall(self, value: float) -> None:
        self._check_mutable("set rainfall")
        self.rainfall = value

    def ensure_node(self, name: str, location: Optional[SourceLocation] = None) -> FlowNode:
        """Return the node for ``name``, creating it on first reference."""
        node = self.nodes.get(name)
        if node is None:
            self._check_mutable(f"create node `{name}`")
            node = FlowNode(name=name, location=location)
            self.nodes[name] = node
            logger.debug("Registered flow node %s", name)
        return node

    def add_edge(self, source: str, target: str) -> None:
        """Append ``source`` to the incoming sources of ``target``."""
        self._check_mutable(f"add edge {source} -> {target}")
        self.nodes[target].incoming.append(source)

    def add_dam(self, dam: Dam) -> bool:
        """Register a dam; returns False if the name is already taken (dams are immutable)."""
        self._check_mutable(f"add dam `{dam.name}`")
        if dam.name in self.dams:
            return False
        self.dams[dam.name] = dam
        logger.debug("Registered dam %s (multiplier=%s, cap=%s)", dam.name, dam.multiplier, dam.cap)
        return True

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_registered(self, name: str) -> bool:
        return name in self.nodes or name in self.dams

    def get_node(self, name: str) -> Optional[FlowNode]:
        return self.nodes.get(name)

    def get_dam(self, name: str) -> Optional[Dam]:
        return self.dams.get(name)

    def flow_node_names(self) -> Iterator[str]:
        """Names of flow nodes in order of first appearance (dam-only names excluded)."""
        return iter(list(self.nodes))

    def dam_parameters(self) -> Dict[str, Dam]:
        return dict(self.dams)

    def __repr__(self) -> str:
        return (f"NetworkModel(rainfall={self.rainfall}, nodes={len(self.nodes)}, "
                f"dams={len(self.dams)}, frozen={self._frozen})")
