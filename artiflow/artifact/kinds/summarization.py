from __future__ import annotations

from pydantic import Field

from ..descriptor import REPLACE, define
from ..schema import ArtifactModel


class Summarization(ArtifactModel):
    summary: str
    key_actions: list[str]
    outcome: str
    next_steps: list[str] | None = None
    confidence: float = Field(ge=0, le=1)
    timestamp: int


SUMMARIZATION = define(
    "summarization",
    Summarization,
    merge_policy={
        "summary": REPLACE,
        "keyActions": REPLACE,
        "outcome": REPLACE,
        "nextSteps": REPLACE,
        "confidence": REPLACE,
        "timestamp": REPLACE,
    },
    description="Closing summary of a run: key actions, outcome, next steps",
)
