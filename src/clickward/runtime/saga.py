from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from clickward.cli.formatter import OutputFormatter
from clickward.core.errors import ReconfigurationError


@dataclass(frozen=True)
class SagaStep:
    """One independently fallible side effect of a multi-step operation."""

    name: str
    action: Callable[[], object]


@dataclass(frozen=True)
class SagaResult:
    """Outcome of a saga that ran every step."""

    operation: str
    completed: List[str] = field(default_factory=list)


def run_saga(operation: str, steps: Sequence[SagaStep]) -> SagaResult:
    """Run steps in order, stopping at the first failure.

    There is no compensation: steps that already ran stay applied and the
    raised ReconfigurationError names them.
    """
    completed: List[str] = []
    for step in steps:
        try:
            step.action()
        except Exception as exc:
            OutputFormatter.log(f"{operation}: step '{step.name}' failed: {exc}", severity="error")
            raise ReconfigurationError(operation, step.name, completed, exc) from exc
        completed.append(step.name)

    return SagaResult(operation=operation, completed=completed)
