from itertools import count

from app.enums import WorkflowStepStatus
from app.services.agent.workflow import WorkflowRecorder


def _recorder(step_ms: int = 5) -> WorkflowRecorder:
    ticks = count(1000, step_ms)
    return WorkflowRecorder(clock=lambda: next(ticks))


def test_records_steps_in_order_with_durations():
    recorder = _recorder()
    started = recorder.start()
    recorder.record("Security scan", started, WorkflowStepStatus.COMPLETED)
    started = recorder.start()
    recorder.record("LLM call", started, WorkflowStepStatus.FAILED, "timeout")

    steps = recorder.steps
    assert [s.label for s in steps] == ["Security scan", "LLM call"]
    assert steps[0].duration_ms == 5
    assert steps[1].detail == "timeout"
    assert steps[1].status == WorkflowStepStatus.FAILED


def test_duration_is_never_negative():
    recorder = WorkflowRecorder(clock=lambda: 100)
    step = recorder.record("Config load", 500, WorkflowStepStatus.COMPLETED)
    assert step.duration_ms == 0


def test_steps_returns_copies():
    recorder = _recorder()
    recorder.record("Parse response", recorder.start(), WorkflowStepStatus.COMPLETED)

    recorder.steps[0].label = "mutated"
    recorder.steps.clear()

    assert recorder.steps[0].label == "Parse response"


def test_recorders_are_independent():
    a, b = _recorder(), _recorder()
    a.record("Save memory", a.start(), WorkflowStepStatus.COMPLETED)
    assert b.steps == []


def test_steps_serialize_camel_case():
    recorder = _recorder()
    recorder.record("Execute actions", recorder.start(), WorkflowStepStatus.SKIPPED)
    wire = recorder.steps[0].to_wire()
    assert set(wire) == {"label", "status", "startedAt", "completedAt", "durationMs"}
