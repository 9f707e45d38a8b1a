"""
Evaluation Environment

Per-pass state of the flow evaluator: the memo of computed outflows and the
stack of names currently being computed. A name enters the stack at most
once per pass, which is what turns a dependency cycle into an error instead
of unbounded recursion.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterator, List, NamedTuple, Optional, Set

from ..shared.source_location import SourceLocation


class OutflowRequest(NamedTuple):
    """Yielded by an evaluation step that needs the outflow of ``name``."""
    name: str
    location: Optional[SourceLocation] = None


# An evaluation step: yields OutflowRequests, is sent back outflows, returns its value
EvaluationSteps = Generator[OutflowRequest, float, Any]


class EvaluationState:
    """
    Memo + in-progress tracking for one evaluation pass.

    - lookup(name) / store(name, value): memoized outflows
    - computing(name): context manager marking ``name`` in progress; the mark
      is released on exit, including on exception
    - reset(): discard everything before a new pass
    """

    def __init__(self):
        self.memo: Dict[str, float] = {}
        self._stack: List[str] = []
        self._active: Set[str] = set()

    def lookup(self, name: str) -> Optional[float]:
        return self.memo.get(name)

    def has_value(self, name: str) -> bool:
        return name in self.memo

    def store(self, name: str, value: float) -> None:
        self.memo[name] = value

    def is_in_progress(self, name: str) -> bool:
        return name in self._active

    @property
    def in_progress(self) -> frozenset:
        return frozenset(self._active)

    def cycle_path(self, name: str) -> List[str]:
        """The part of the current call chain from ``name`` back to itself."""
        if name not in self._active:
            return []
        start = self._stack.index(name)
        return self._stack[start:] + [name]

    @contextmanager
    def computing(self, name: str) -> Iterator[None]:
        """Mark ``name`` as in progress for the duration of the block."""
        self._stack.append(name)
        self._active.add(name)
        try:
            yield
        finally:
            self._active.discard(self._stack.pop())

    def reset(self) -> None:
        self.memo.clear()
        self._stack.clear()
        self._active.clear()
