"""
Pytest configuration and shared fixtures for all Hydrolang tests.

The parser (with its Lark tables) is expensive to build, so one compiler is
shared per session. Compilation creates a fresh builder and model per call
and the runtime creates a fresh evaluation state per pass, so sharing them
cannot leak state between tests.
"""

import sys
from pathlib import Path
from typing import Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from hydrolang.compiler.driver import NetworkCompiler
from hydrolang.frontend.parser import Parser
from hydrolang.runtime.runtime import HydroRuntime


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser; Lark tables are built (or loaded from cache) once."""
    return Parser()


@pytest.fixture(scope="session")
def session_compiler(session_parser):
    """Session-scoped stateless compiler instance shared across ALL tests."""
    return NetworkCompiler(parser=session_parser)


# =============================================================================
# Class- and function-scoped fixtures
# =============================================================================

@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - returns session compiler (stateless, safe to share)."""
    return session_compiler


@pytest.fixture
def parser(session_parser):
    return session_parser


@pytest.fixture
def runtime():
    """Function-scoped runtime."""
    return HydroRuntime()


@pytest.fixture
def run_source(session_compiler):
    """Compile and execute a source string, returning tests.test_utils.ExecutionResult."""
    from tests.test_utils import compile_and_execute

    def _run(source: str, source_file: Optional[str] = None):
        return compile_and_execute(source, session_compiler, HydroRuntime(), source_file or "<test>")

    return _run
