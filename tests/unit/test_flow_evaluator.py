"""
Tests for FlowEvaluator: memoized outflow computation over the network.
"""

import math

import pytest

from hydrolang.runtime.environment import EvaluationState
from hydrolang.runtime.flow import FlowEvaluator
from hydrolang.shared.errors import CycleDetected, ExpressionTypeMismatch, UndefinedNode
from tests.test_utils import (
    binary, build, combine, dam, flows, lit, rainfall, ref, river, river_expr, river_with_flow, var,
)


def evaluator_for(*statements):
    return FlowEvaluator(build(*statements))


class TestAccumulation:
    """base_flow * rainfall plus incoming outflows."""

    def test_rainfall_scales_base_flow(self):
        ev = evaluator_for(rainfall(2), river_with_flow("R1", 3))
        assert ev.compute_outflow("R1") == 6.0

    def test_default_rainfall_is_one(self):
        assert evaluator_for(river_with_flow("R1", 3)).compute_outflow("R1") == 3.0

    def test_rainfall_applies_regardless_of_declaration_order(self):
        ev = evaluator_for(river_with_flow("R1", 3), rainfall(2))
        assert ev.compute_outflow("R1") == 6.0

    def test_plain_flow_target_is_zero(self):
        ev = evaluator_for(flows("Y", "Z"))
        assert ev.compute_outflow("Y") == 0.0
        assert ev.compute_outflow("Z") == 0.0

    def test_combination_sums_sources(self):
        ev = evaluator_for(river_with_flow("A", 2), river_with_flow("B", 5), combine("M", "A", "B"))
        assert ev.compute_outflow("M") == 7.0

    def test_own_base_flow_adds_to_incoming(self):
        ev = evaluator_for(river_with_flow("A", 2), river_with_flow("B", 1), flows("A", "B"))
        assert ev.compute_outflow("B") == 3.0

    def test_duplicate_edge_counts_twice(self):
        ev = evaluator_for(river_with_flow("A", 2), flows("A", "T"), flows("A", "T"))
        assert ev.compute_outflow("T") == 4.0

    def test_declaration_order_does_not_matter(self):
        forward = evaluator_for(flows("A", "B"), river_with_flow("A", 4), river_with_flow("B", 1))
        backward = evaluator_for(river_with_flow("B", 1), river_with_flow("A", 4), flows("A", "B"))
        assert forward.compute_outflow("B") == backward.compute_outflow("B") == 5.0

    def test_diamond_shares_memoized_value(self):
        ev = evaluator_for(
            river_with_flow("S", 1), flows("S", "L"), flows("S", "R"), combine("J", "L", "R"),
        )
        assert ev.compute_outflow("J") == 2.0
        assert ev.state.memo["S"] == 1.0


class TestSymbolic:
    """Nodes defined by an expression ignore base flow and edges."""

    def test_sum_of_rivers(self):
        ev = evaluator_for(
            river_with_flow("A", 4), river_with_flow("B", 5), river_expr("X", binary(ref("A"), "+", ref("B"))),
        )
        assert ev.compute_outflow("X") == 9.0

    def test_forward_references_resolve_lazily(self):
        ev = evaluator_for(
            river_expr("X", binary(ref("A"), "*", lit(2.0))), river_with_flow("A", 3),
        )
        assert ev.compute_outflow("X") == 6.0

    def test_expression_overrides_accumulation(self):
        ev = evaluator_for(
            river_with_flow("A", 1), river_with_flow("X", 100), flows("A", "X"), river_expr("X", lit(5.0)),
        )
        assert ev.compute_outflow("X") == 5.0

    def test_non_numeric_result_is_a_type_mismatch(self):
        ev = evaluator_for(river_expr("X", lit("text")))
        with pytest.raises(ExpressionTypeMismatch) as exc_info:
            ev.compute_outflow("X")
        assert exc_info.value.name == "X"

    def test_variable_node(self):
        ev = evaluator_for(rainfall(3), var("x", lit(2.0)))
        assert ev.compute_outflow("x") == 6.0


class TestDams:

    def test_dam_applied_after_accumulation(self):
        ev = evaluator_for(river_with_flow("D", 10), dam("D", multiplier=0.5, cap=4))
        assert ev.compute_outflow("D") == 4.0

    def test_dam_value_propagates_downstream(self):
        ev = evaluator_for(river_with_flow("D", 6), dam("D", multiplier=0.5), flows("D", "Out"))
        assert ev.compute_outflow("Out") == 3.0

    def test_dam_applies_to_symbolic_node(self):
        ev = evaluator_for(river_expr("X", lit(20.0)), dam("X", cap=8))
        assert ev.compute_outflow("X") == 8.0

    def test_dam_without_node_is_zero(self):
        ev = evaluator_for(dam("Lonely", multiplier=3))
        assert ev.compute_outflow("Lonely") == 0.0


class TestErrors:

    def test_undefined_name(self):
        ev = evaluator_for(river_expr("X", ref("Nowhere")))
        with pytest.raises(UndefinedNode) as exc_info:
            ev.compute_outflow("X")
        assert exc_info.value.name == "Nowhere"

    def test_direct_undefined_query(self):
        with pytest.raises(UndefinedNode):
            evaluator_for(river("A")).compute_outflow("B")

    def test_two_node_cycle(self):
        ev = evaluator_for(river_with_flow("A", 1), river_with_flow("B", 1), combine("B", "A", "B"))
        assert ev.compute_outflow("A") == 1.0
        with pytest.raises(CycleDetected) as exc_info:
            ev.compute_outflow("B")
        assert exc_info.value.path == ["B", "B"]

    def test_longer_cycle_path(self):
        ev = evaluator_for(flows("A", "B"), flows("B", "C"), flows("C", "A"))
        with pytest.raises(CycleDetected) as exc_info:
            ev.compute_outflow("A")
        assert exc_info.value.path == ["A", "C", "B", "A"]
        assert "A -> C -> B -> A" in exc_info.value.note_text

    def test_self_reference_expression(self):
        ev = evaluator_for(river_expr("A", binary(ref("A"), "*", lit(2.0))))
        with pytest.raises(CycleDetected):
            ev.compute_outflow("A")

    def test_in_progress_released_after_error(self):
        ev = evaluator_for(river_expr("X", ref("Missing")), river_with_flow("Y", 2))
        with pytest.raises(UndefinedNode):
            ev.compute_outflow("X")
        assert ev.state.in_progress == frozenset()
        assert ev.compute_outflow("Y") == 2.0

    def test_failed_node_is_not_memoized(self):
        ev = evaluator_for(river_expr("X", ref("Missing")))
        with pytest.raises(UndefinedNode):
            ev.compute_outflow("X")
        assert not ev.state.has_value("X")


class TestMemoization:

    def test_repeated_queries_are_identical(self):
        ev = evaluator_for(river_with_flow("A", 1.5), flows("A", "B"))
        first = ev.compute_outflow("B")
        assert ev.compute_outflow("B") == first
        assert ev.state.lookup("B") == first

    def test_reset_clears_memo(self):
        ev = evaluator_for(river_with_flow("A", 1))
        ev.compute_outflow("A")
        ev.reset()
        assert not ev.state.has_value("A")

    def test_division_by_zero_result_is_memoized(self):
        ev = evaluator_for(river_expr("X", binary(lit(1.0), "/", lit(0.0))))
        assert math.isinf(ev.compute_outflow("X"))
        assert math.isinf(ev.state.lookup("X"))


class TestEvaluationState:

    def test_computing_marks_and_releases(self):
        state = EvaluationState()
        with state.computing("A"):
            assert state.is_in_progress("A")
            with state.computing("B"):
                assert state.in_progress == frozenset({"A", "B"})
                assert state.cycle_path("A") == ["A", "B", "A"]
        assert state.in_progress == frozenset()

    def test_computing_releases_on_exception(self):
        state = EvaluationState()
        with pytest.raises(RuntimeError):
            with state.computing("A"):
                raise RuntimeError("boom")
        assert not state.is_in_progress("A")

    def test_cycle_path_for_unknown_name(self):
        assert EvaluationState().cycle_path("Z") == []


class TestSelfLoops:

    def test_flow_into_itself(self):
        ev = evaluator_for(river_with_flow("A", 1), flows("A", "A"))
        with pytest.raises(CycleDetected) as exc_info:
            ev.compute_outflow("A")
        assert exc_info.value.path == ["A", "A"]


class TestVisitationOrder:
    """Outflows are a function of the declared structure, not of query order."""

    def test_forward_and_reverse_queries_agree(self):
        model = build(
            rainfall(2),
            river_with_flow("A", 1),
            river_with_flow("B", 3),
            flows("A", "C"),
            combine("D", "B", "C"),
            river_expr("E", binary(ref("D"), "/", ref("A"))),
            dam("D", multiplier=0.5, cap=3),
            flows("D", "F"),
        )
        names = list(model.flow_node_names())

        forward = FlowEvaluator(model)
        forward_values = {name: forward.compute_outflow(name) for name in names}
        backward = FlowEvaluator(model)
        backward_values = {name: backward.compute_outflow(name) for name in reversed(names)}

        assert forward_values == backward_values
        assert forward_values["D"] == 3.0
        assert forward_values["E"] == 1.5


class TestLongChains:
    """Chain length is not limited by the interpreter's recursion limit."""

    CHAIN_LENGTH = 3000

    def test_reverse_declared_flow_chain(self):
        n = self.CHAIN_LENGTH
        statements = [flows(f"N{i}", f"N{i + 1}") for i in reversed(range(n))]
        ev = evaluator_for(*statements, river_with_flow("N0", 1))
        assert ev.compute_outflow(f"N{n}") == 1.0

    def test_reverse_declared_symbolic_chain(self):
        n = self.CHAIN_LENGTH
        statements = [river_expr(f"S{i + 1}", binary(ref(f"S{i}"), "+", lit(1.0))) for i in reversed(range(n))]
        ev = evaluator_for(*statements, river_with_flow("S0", 1))
        assert ev.compute_outflow(f"S{n}") == float(n + 1)
        assert ev.state.in_progress == frozenset()

    def test_error_at_the_end_of_a_long_chain(self):
        n = self.CHAIN_LENGTH
        statements = [flows(f"N{i}", f"N{i + 1}") for i in range(n)]
        ev = evaluator_for(*statements, flows(f"N{n}", "N0"))
        with pytest.raises(CycleDetected) as exc_info:
            ev.compute_outflow("N0")
        assert len(exc_info.value.path) == n + 2
        assert ev.state.in_progress == frozenset()


class TestStepDriver:
    """FlowEvaluator.run services outflow requests on an explicit stack."""

    def test_error_is_raised_where_the_reference_was_made(self):
        ev = evaluator_for(
            river_expr("X", binary(ref("Missing"), "+", lit(1.0))),
            river_expr("Y", binary(ref("X"), "*", lit(2.0))),
        )
        with pytest.raises(UndefinedNode) as exc_info:
            ev.compute_outflow("Y")
        assert exc_info.value.name == "Missing"
        assert not ev.state.has_value("X")
        assert not ev.state.has_value("Y")

    def test_evaluate_numeric_resolves_references(self):
        ev = evaluator_for(river_with_flow("A", 2), flows("A", "B"))
        assert ev.evaluate_numeric(binary(ref("B"), "*", lit(3.0)), "q") == 6.0
        assert ev.state.lookup("A") == 2.0
