"""
Aggregation helpers: recompute derived fields before publishing a delta.

Derived values are recomputed from the full list on every call (O(n)); the
lists involved are small (plans are capped around `max_plan_steps`).
Each helper builds the complete new list itself and publishes it with a
single `update()`, so subscribers always see consistent summaries.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable, Mapping, Sequence

from .errors import InvalidStepTransition
from .kinds.execution_plan import STEP_COMPLETED, STEP_FAILED, STEP_IN_PROGRESS, STEP_PENDING
from .session import StreamingSession
from .util import now_ms

logger = logging.getLogger(__name__)

# Per-step state machine: nothing returns to pending, completed/failed are final.
STEP_TRANSITIONS: dict[str, frozenset[str]] = {
    STEP_PENDING: frozenset({STEP_PENDING, STEP_IN_PROGRESS, STEP_COMPLETED, STEP_FAILED}),
    STEP_IN_PROGRESS: frozenset({STEP_IN_PROGRESS, STEP_COMPLETED, STEP_FAILED}),
    STEP_COMPLETED: frozenset(),
    STEP_FAILED: frozenset(),
}


def check_step_transition(step_index: int, current: str, target: str) -> None:
    if target not in STEP_TRANSITIONS:
        raise ValueError(f"Unknown step status: {target!r}")
    if target not in STEP_TRANSITIONS.get(current, frozenset()):
        raise InvalidStepTransition(step_index, current, target)


# -----------------------------------------------------------------------------
# Step-progress aggregation (execution_plan)
# -----------------------------------------------------------------------------


def compute_plan_progress(steps: Sequence[Mapping[str, Any]], total_steps: int | None) -> tuple[int, float]:
    """Return (completedSteps, progress); progress is 0 when total_steps is 0/unset."""
    completed = sum(1 for s in steps if s.get("status") == STEP_COMPLETED)
    progress = completed / total_steps if total_steps else 0
    return completed, min(progress, 1.0)


def update_execution_plan_progress(
    session: StreamingSession[Any],
    step_index: int,
    status: str,
    result: str | None = None,
) -> bool:
    """
    Move plan step `step_index` to `status` and publish recomputed progress.

    Returns False (and publishes nothing) when the step does not exist.

    Raises:
        InvalidStepTransition: If the step would regress or leave a final state
    """
    current = session.current
    steps = list(current.get("steps") or [])
    if not 0 <= step_index < len(steps):
        logger.warning(f"{session.id}: no step at index {step_index} ({len(steps)} steps); ignoring {status}")
        return False

    if len(steps) > session.config.max_plan_steps:
        logger.warning(f"{session.id}: plan has {len(steps)} steps (max_plan_steps={session.config.max_plan_steps})")

    step = dict(steps[step_index])
    check_step_transition(step_index, str(step.get("status", STEP_PENDING)), status)

    step["status"] = status
    if result is not None:
        step["result"] = result
    else:
        step.pop("result", None)
    steps[step_index] = step

    completed, progress = compute_plan_progress(steps, current.get("totalSteps"))
    session.update(
        {
            "steps": steps,
            "completedSteps": completed,
            "currentStep": step_index,
            "progress": progress,
        }
    )
    return True


# -----------------------------------------------------------------------------
# Call-result aggregation (tool_results)
# -----------------------------------------------------------------------------


def summarize_tool_calls(calls: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """Summary over a full call list: counts, mean duration, per-tool histogram."""
    total = 0
    successes = 0
    duration_sum = 0.0
    usage: dict[str, int] = {}
    for call in calls:
        total += 1
        if call.get("success"):
            successes += 1
        duration_sum += float(call.get("duration", 0))
        name = str(call.get("toolName", ""))
        usage[name] = usage.get(name, 0) + 1

    return {
        "totalCalls": total,
        "successCount": successes,
        "errorCount": total - successes,
        "averageDuration": duration_sum / total if total else 0,
        "toolUsage": usage,
    }


def add_tool_result(
    session: StreamingSession[Any],
    tool_name: str,
    args: Mapping[str, Any],
    result: Any,
    duration: float,
    success: bool,
    error: str | None = None,
    timestamp: int | None = None,
) -> dict[str, Any]:
    """Append one call record (order preserved, no dedup) and publish the new summary."""
    call: dict[str, Any] = {
        "toolName": tool_name,
        "args": copy.deepcopy(dict(args)),
        "result": copy.deepcopy(result),
        "duration": duration,
        "success": success,
        "timestamp": timestamp if timestamp is not None else now_ms(),
    }
    if error is not None:
        call["error"] = error

    calls = [*(session.current.get("toolCalls") or []), call]
    summary = summarize_tool_calls(calls)
    session.update({"toolCalls": calls, "summary": summary})
    return summary
