"""
Registered artifact kinds.

Each kind module defines its pydantic schema and descriptor.
"""

from __future__ import annotations

import json
from typing import Any

from ..data import ArtifactData
from ..descriptor import Descriptor
from ..errors import UnknownKindError
from .evaluation import EVALUATION, Evaluation
from .execution_plan import EXECUTION_PLAN, ExecutionPlan, PlanStep
from .page_context import PAGE_CONTEXT, PageContext
from .summarization import SUMMARIZATION, Summarization
from .tool_results import TOOL_RESULTS, ToolCall, ToolResults, ToolSummary


KINDS: dict[str, Descriptor[Any]] = {
    "execution_plan": EXECUTION_PLAN,
    "tool_results": TOOL_RESULTS,
    "page_context": PAGE_CONTEXT,
    "evaluation": EVALUATION,
    "summarization": SUMMARIZATION,
}


# ============================================================================
# KIND METADATA REGISTRY
# ============================================================================

KIND_REGISTRY_VERSION = 1  # Increment when adding/removing kinds

KIND_METADATA: dict[str, dict[str, Any]] = {
    # Fields recomputed by the aggregation helpers on every delta
    "execution_plan": {"derived_fields": ["completedSteps", "currentStep", "progress"]},
    "tool_results": {"derived_fields": ["summary"]},
    "page_context": {"derived_fields": []},
    "evaluation": {"derived_fields": []},
    "summarization": {"derived_fields": []},
}


# ============================================================================
# REGISTRY QUERY FUNCTIONS
# ============================================================================

def get_descriptor(kind: str) -> Descriptor[Any] | None:
    """Get descriptor for an artifact kind (case-insensitive, None-safe)."""
    return KINDS.get((kind or "").strip().lower())


def require_descriptor(kind: str) -> Descriptor[Any]:
    descriptor = get_descriptor(kind)
    if descriptor is None:
        raise UnknownKindError(kind)
    return descriptor


def list_kinds() -> list[str]:
    """List all registered kinds."""
    return sorted(KINDS.keys())


def parse_envelope(payload: str | bytes) -> ArtifactData[Any]:
    """Parse a serialized envelope of any registered kind."""
    envelope = json.loads(payload)
    kind = envelope.get("metadata", {}).get("type") if isinstance(envelope, dict) else None
    if not isinstance(kind, str):
        raise ValueError("Artifact envelope missing metadata.type")
    return require_descriptor(kind).parse(payload)


__all__ = [
    "KINDS",
    "KIND_METADATA",
    "KIND_REGISTRY_VERSION",
    "EXECUTION_PLAN",
    "TOOL_RESULTS",
    "PAGE_CONTEXT",
    "EVALUATION",
    "SUMMARIZATION",
    "ExecutionPlan",
    "PlanStep",
    "ToolCall",
    "ToolResults",
    "ToolSummary",
    "PageContext",
    "Evaluation",
    "Summarization",
    "get_descriptor",
    "require_descriptor",
    "list_kinds",
    "parse_envelope",
]
