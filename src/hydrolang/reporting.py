"""
Text reporting of declarations and results, in the language's console wording.
"""

from typing import Callable, Dict, Iterable, List

from .network.model import Dam
from .runtime.runtime import ExecutionResult
from .shared.errors import HydroImplementationError
from .shared.nodes import DamDeclaration, NodeType, Statement, Token, format_number
from .utils.config import FLOW_RATE_UNITS, OUTFLOW_UNITS, RAINFALL_UNITS


def _numeral(token: Token) -> str:
    """Echo a numeric token as the language prints numbers, keeping bad lexemes verbatim."""
    try:
        return format_number(float(token.lexeme))
    except ValueError:
        return token.lexeme


def _describe_dam_declaration(stmt: DamDeclaration) -> str:
    params = []
    if stmt.multiplier is not None:
        params.append(f"multiplier {_numeral(stmt.multiplier)}")
    if stmt.cap is not None:
        params.append(f"cap {_numeral(stmt.cap)}")
    suffix = f" ({', '.join(params)})" if params else " (pass-through)"
    return f"Declare dam: {stmt.name}{suffix}"


_STATEMENT_FORMATTERS: Dict[NodeType, Callable[[Statement], str]] = {
    NodeType.RAINFALL_DECL: lambda s: f"Rainfall set to: {_numeral(s.value)} {RAINFALL_UNITS}",
    NodeType.RIVER_DECL: lambda s: f"Declare river: {s.name} as {s.type}",
    NodeType.RIVER_DECL_WITH_FLOW: lambda s: (
        f"Declare river: {s.name} as {s.type} with flow rate {_numeral(s.flow_rate)} {FLOW_RATE_UNITS}"
    ),
    NodeType.RIVER_FLOW: lambda s: f"River {s.source} flows to {s.target}",
    NodeType.RIVER_COMBINATION: lambda s: f"River {s.name} combines: {' '.join(str(t) for t in s.sources)}",
    NodeType.RIVER_COMBINATION_EXPR: lambda s: f"River {s.name} is combination of: {s.expression}",
    NodeType.DAM_DECL: _describe_dam_declaration,
    NodeType.VARIABLE_DECL: lambda s: f"Declare variable: {s.name}",
}


def describe_statement(stmt: Statement) -> str:
    formatter = _STATEMENT_FORMATTERS.get(stmt.node_type)
    if formatter is None:
        raise HydroImplementationError(f"no description for {stmt.node_type.value} statements")
    return formatter(stmt)


def describe_statements(statements: Iterable[Statement]) -> List[str]:
    return [describe_statement(stmt) for stmt in statements]


def format_outflow(name: str, value: float) -> str:
    return f"Outflow of {name}: {format_number(value)} {OUTFLOW_UNITS}"


def format_dam(dam: Dam) -> str:
    multiplier = format_number(dam.multiplier) if dam.multiplier is not None else "none"
    cap = format_number(dam.cap) if dam.cap is not None else "none"
    return f"Dam {dam.name}: multiplier {multiplier}, cap {cap}"


def format_results(result: ExecutionResult) -> List[str]:
    """Outflow lines for successful nodes, then the dam listing."""
    lines = [format_outflow(name, value) for name, value in result.outflows.items()]
    lines.extend(format_dam(dam) for dam in result.dams.values())
    return lines
