"""
End-to-end tests: source text through parser, builder and runtime.
"""

import math

from hydrolang.shared.errors import CycleDetected, ExpressionTypeMismatch, OperandTypeError, UndefinedNode
from tests.test_utils import assert_float_close


class TestFlowNetworks:

    def test_rainfall_times_flow_rate(self, run_source):
        result = run_source("rainfall = 2; river R1 = root with 3;")
        assert result.success
        assert result.outflows == {"R1": 6.0}

    def test_simple_chain(self, run_source):
        result = run_source("""
            river A = root with 2;
            river B = root with 1;
            river A -> B;
            river B -> C;
        """)
        assert result.outflows == {"A": 2.0, "B": 3.0, "C": 3.0}

    def test_undeclared_flow_endpoints_are_zero(self, run_source):
        result = run_source("river Y -> Z;")
        assert result.outflows == {"Y": 0.0, "Z": 0.0}

    def test_outflows_in_first_appearance_order(self, run_source):
        result = run_source("river C -> A; river B = root with 1; river B -> A;")
        assert list(result.outflows) == ["C", "A", "B"]

    def test_dam_multiplies_then_caps(self, run_source):
        result = run_source("""
            river R = root with 3;
            dam R with multiplier 0.5, cap 2;
        """)
        assert result.outflows["R"] == 1.5

    def test_dam_only_name_is_not_an_outflow(self, run_source):
        result = run_source("river A = root with 1; dam Ghost with cap 1;")
        assert result.success
        assert "Ghost" not in result.outflows
        assert any("Ghost" in w for w in result.network.warnings)

    def test_empty_program(self, run_source):
        result = run_source("// nothing here\n")
        assert result.success
        assert result.outflows == {}


class TestSymbolicNetworks:

    def test_sum_expression(self, run_source):
        result = run_source("""
            river X = A + B;
            river A = root with 4;
            river B = root with 5;
        """)
        assert result.outflows["X"] == 9.0

    def test_threshold_expression(self, run_source):
        result = run_source("""
            river Total = A + B;
            river Over = (Total > 8) * (Total - 8);
            river Under = !(Total > 8);
            river A = root with 4;
            river B = root with 5;
        """)
        assert result.outflows["Over"] == 1.0
        assert result.outflows["Under"] == 0.0

    def test_ratio_with_zero_denominator(self, run_source):
        result = run_source("river A = root with 1; river Z -> Q; river R = A / Z;")
        assert result.success
        assert math.isinf(result.outflows["R"])

    def test_var_contributes_like_a_river(self, run_source):
        result = run_source("""
            rainfall = 1.5;
            var extra = 2;
            river Main combine extra;
        """)
        assert_float_close(result.outflows["extra"], 3.0)
        assert_float_close(result.outflows["Main"], 3.0)

    def test_var_initializer_references_network(self, run_source):
        result = run_source("river A = root with 4; var half = A / 2;")
        assert result.outflows["half"] == 2.0


class TestPartialFailure:
    """A failing node is reported and every other node still evaluates."""

    def test_cycle_isolated_to_participants(self, run_source):
        result = run_source("""
            river A = root with 1;
            river B = root with 1;
            river B combine A, B;
        """)
        assert not result.success
        assert result.outflows == {"A": 1.0}
        assert result.error_kind("B") is CycleDetected

    def test_downstream_of_cycle_fails_too(self, run_source):
        result = run_source("river A -> B; river B -> A; river B -> C; river D = root with 2;")
        assert set(result.errors) == {"A", "B", "C"}
        assert result.outflows == {"D": 2.0}

    def test_self_referencing_expression(self, run_source):
        result = run_source("river A = A * 2;")
        assert result.error_kind("A") is CycleDetected

    def test_undefined_reference(self, run_source):
        result = run_source("river X = Missing + 1; river Y = root with 2;")
        assert result.error_kind("X") is UndefinedNode
        assert result.outflows == {"Y": 2.0}
        assert any("error[E0425]" in d for d in result.diagnostics)

    def test_string_operand(self, run_source):
        result = run_source('river X = "a" + 1;')
        assert result.error_kind("X") is OperandTypeError

    def test_non_numeric_expression(self, run_source):
        result = run_source("river X = nil;")
        assert result.error_kind("X") is ExpressionTypeMismatch

    def test_assignment_in_expression(self, run_source):
        result = run_source("river X = y = 1;")
        assert not result.success
        assert "X" in result.errors

    def test_construction_error_does_not_stop_evaluation(self, run_source):
        result = run_source("var bad = Nope; river A = root with 2;")
        assert not result.success
        assert result.outflows == {"A": 2.0}
        assert "bad" not in result.outflows

    def test_parse_error_stops_before_evaluation(self, run_source):
        result = run_source("river A = root with;")
        assert not result.success
        assert result.network is None
        assert "error[E0002]" in result.diagnostics[0]


class TestRepeatability:

    def test_same_network_twice_gives_same_results(self, session_compiler, runtime):
        compiled = session_compiler.compile("river A = root with 2; river A -> B;", "repeat.hyd")
        first = runtime.execute(compiled.network)
        second = runtime.execute(compiled.network)
        assert first.outflows == second.outflows == {"A": 2.0, "B": 2.0}


class TestLargeNetworks:
    """Long dependency chains evaluate like short ones."""

    CHAIN_LENGTH = 1200

    def test_reverse_declared_symbolic_chain(self, run_source):
        n = self.CHAIN_LENGTH
        source = "".join(f"river S{i + 1} = S{i} + 1;\n" for i in reversed(range(n)))
        source += "river S0 = root with 1;\n"
        result = run_source(source)
        assert result.success, "\n".join(result.diagnostics)
        assert len(result.outflows) == n + 1
        assert result.outflows[f"S{n}"] == float(n + 1)

    def test_reverse_declared_flow_chain(self, run_source):
        n = self.CHAIN_LENGTH
        source = "".join(f"river N{i} -> N{i + 1};\n" for i in reversed(range(n)))
        source += "river N0 = root with 2;\n"
        result = run_source(source)
        assert result.success, "\n".join(result.diagnostics)
        assert all(value == 2.0 for value in result.outflows.values())

    def test_long_chain_into_a_cycle_fails_per_node(self, run_source):
        n = self.CHAIN_LENGTH
        source = "river Loop -> Loop;\n"
        source += "".join(f"river N{i} -> N{i + 1};\n" for i in range(n))
        source += "river Loop -> N0;\nriver Dry = root with 1;\n"
        result = run_source(source)
        assert result.error_kind("Loop") is CycleDetected
        assert result.error_kind(f"N{n}") is CycleDetected
        assert result.outflows == {"Dry": 1.0}

    def test_self_loop_flow(self, run_source):
        result = run_source("river A = root with 1; river A -> A; river B = root with 2;")
        assert result.error_kind("A") is CycleDetected
        assert result.outflows == {"B": 2.0}
