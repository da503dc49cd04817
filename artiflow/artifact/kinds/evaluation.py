from __future__ import annotations

from typing import Literal

from pydantic import Field

from ..descriptor import REPLACE, define
from ..schema import ArtifactModel

Quality = Literal["poor", "fair", "good", "excellent"]


class RetryStrategy(ArtifactModel):
    approach: str
    focus_areas: list[str]
    estimated_improvement: float


class Evaluation(ArtifactModel):
    quality: Quality
    score: float = Field(ge=0, le=1)
    completeness: float = Field(ge=0, le=1)
    correctness: float = Field(ge=0, le=1)
    issues: list[str]
    strengths: list[str]
    should_proceed: bool
    retry_strategy: RetryStrategy | None = None
    timestamp: int


EVALUATION = define(
    "evaluation",
    Evaluation,
    merge_policy={
        "quality": REPLACE,
        "score": REPLACE,
        "completeness": REPLACE,
        "correctness": REPLACE,
        "issues": REPLACE,
        "strengths": REPLACE,
        "shouldProceed": REPLACE,
        "retryStrategy": REPLACE,
        "timestamp": REPLACE,
    },
    description="Quality assessment of an execution, with optional retry strategy",
)
