"""
Compiler Driver

Orchestrates the phases that precede evaluation:
1. Parse source text into a Program
2. Fold the Program's statements into a frozen NetworkModel
"""

import logging
from typing import Optional

from ..frontend.parser import Parser
from ..network.builder import NetworkBuilder
from ..network.model import NetworkModel
from ..shared.errors import ErrorReporter, ParseError
from ..shared.nodes import Program
from ..utils.config import DEFAULT_SOURCE_NAME

logger = logging.getLogger(__name__)


class CompilationResult:
    """Compilation result"""
    def __init__(
        self,
        program: Optional[Program] = None,
        network: Optional[NetworkModel] = None,
        reporter: Optional[ErrorReporter] = None,
        success: bool = False
    ):
        self.program = program
        self.network = network
        self.reporter = reporter
        self.success = success

    def has_errors(self) -> bool:
        """True if compilation reported errors."""
        if self.reporter:
            return self.reporter.has_errors()
        return not self.success


class NetworkCompiler:
    """
    Source text -> Program -> NetworkModel.

    The parser (and its Lark tables) is created once; every compile gets a
    fresh builder and model, so instances are safe to share between runs.
    """

    def __init__(self, parser: Optional[Parser] = None):
        self.parser = parser if parser is not None else Parser()

    def compile(self, source: str, source_file: str = DEFAULT_SOURCE_NAME,
                reporter: Optional[ErrorReporter] = None) -> CompilationResult:
        reporter = reporter if reporter is not None else ErrorReporter({source_file: source})
        reporter.source_files.setdefault(source_file, source)

        try:
            program = self.parser.parse(source, source_file)
        except ParseError as e:
            logger.debug("Parsing %s failed: %s", source_file, e.message)
            reporter.report_exception(e)
            return CompilationResult(reporter=reporter, success=False)

        network = NetworkBuilder(reporter).build(program.statements)
        return CompilationResult(
            program=program,
            network=network,
            reporter=reporter,
            success=not reporter.has_errors(),
        )
