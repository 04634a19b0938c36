"""Workflow step recording for a single message run."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from app.enums import WorkflowStepStatus
from app.models.agent import WorkflowStep


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class WorkflowRecorder:
    """Per-invocation trail of pipeline stages.

    Steps are appended as each stage finishes and are never edited afterwards;
    ``steps`` returns copies so callers cannot mutate the trail.
    """

    clock: Callable[[], int] = now_ms
    _steps: list[WorkflowStep] = field(default_factory=list)

    def start(self) -> int:
        return self.clock()

    def record(
        self,
        label: str,
        started_at: int,
        status: WorkflowStepStatus,
        detail: str | None = None,
    ) -> WorkflowStep:
        completed_at = self.clock()
        step = WorkflowStep(
            label=label,
            status=status,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=max(0, completed_at - started_at),
            detail=detail,
        )
        self._steps.append(step)
        return step

    @property
    def steps(self) -> list[WorkflowStep]:
        return [step.model_copy() for step in self._steps]
