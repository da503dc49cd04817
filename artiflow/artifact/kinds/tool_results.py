from __future__ import annotations

from typing import Any

from pydantic import Field

from ..descriptor import REPLACE, define
from ..schema import ArtifactModel


class ToolCall(ArtifactModel):
    tool_name: str
    args: dict[str, Any]
    result: Any = None
    duration: float = Field(ge=0)
    success: bool
    timestamp: int
    error: str | None = None


class ToolSummary(ArtifactModel):
    total_calls: int = Field(ge=0)
    success_count: int = Field(ge=0)
    error_count: int = Field(ge=0)
    average_duration: float = Field(ge=0)
    tool_usage: dict[str, int]


class ToolResults(ArtifactModel):
    tool_calls: list[ToolCall]
    summary: ToolSummary


EMPTY_SUMMARY = {
    "totalCalls": 0,
    "successCount": 0,
    "errorCount": 0,
    "averageDuration": 0,
    "toolUsage": {},
}

TOOL_RESULTS = define(
    "tool_results",
    ToolResults,
    {"toolCalls": [], "summary": EMPTY_SUMMARY},
    merge_policy={
        # add_tool_result publishes the whole list; appending here would duplicate calls.
        "toolCalls": REPLACE,
        "summary": REPLACE,
    },
    description="Tool call log with success/error counts, timing and usage histogram",
)
