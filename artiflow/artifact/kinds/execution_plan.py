from __future__ import annotations

from typing import Literal

from pydantic import Field

from ..descriptor import REPLACE, define
from ..schema import ArtifactModel

# Step states
STEP_PENDING = "pending"
STEP_IN_PROGRESS = "in_progress"
STEP_COMPLETED = "completed"
STEP_FAILED = "failed"

StepStatus = Literal["pending", "in_progress", "completed", "failed"]


class PlanStep(ArtifactModel):
    step: int
    action: str
    target: str | None = None
    status: StepStatus
    reasoning: str
    result: str | None = None


class ExecutionPlan(ArtifactModel):
    objective: str
    approach: str
    total_steps: int = Field(ge=0)
    completed_steps: int = Field(ge=0)
    current_step: int | None = None
    steps: list[PlanStep]
    progress: float = Field(ge=0, le=1)
    estimated_time_remaining: float | None = None


EXECUTION_PLAN = define(
    "execution_plan",
    ExecutionPlan,
    {"completedSteps": 0, "progress": 0, "steps": []},
    merge_policy={
        "objective": REPLACE,
        "approach": REPLACE,
        "totalSteps": REPLACE,
        "completedSteps": REPLACE,
        "currentStep": REPLACE,
        # Helpers rebuild the full list before publishing.
        "steps": REPLACE,
        "progress": REPLACE,
        "estimatedTimeRemaining": REPLACE,
    },
    description="Step-by-step execution plan with live progress",
)
