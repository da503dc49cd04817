"""
Error taxonomy for the artifact engine.

Validation errors and producer failures are deliberately separate: the former
is an exception raised by schema parsing, the latter is a terminal state
recorded on a streaming session (`ArtifactFailure`), not an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError


class ErrorCause(str, Enum):
    """Why a streaming session ended in the error state."""

    SCHEMA_MISMATCH = "schema_mismatch"
    PRODUCER_FAILURE = "producer_failure"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ArtifactFailure:
    """Terminal failure recorded on a session."""

    cause: ErrorCause
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"cause": self.cause.value, "message": self.message}


class ArtifactValidationError(ValueError):
    """Raised when data does not match a kind's schema."""

    def __init__(self, kind: str, issues: list[dict[str, Any]]):
        self.kind = kind
        self.issues = issues
        summary = "; ".join(f"{issue['loc']}: {issue['msg']}" for issue in issues[:5])
        if len(issues) > 5:
            summary += f"; ... ({len(issues) - 5} more)"
        super().__init__(f"{kind} validation failed: {summary}")

    @classmethod
    def from_pydantic(cls, kind: str, exc: ValidationError) -> ArtifactValidationError:
        issues = [
            {
                "loc": ".".join(str(part) for part in err.get("loc", ())) or "<root>",
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        return cls(kind, issues)


class SessionClosedError(ValueError):
    """Raised when a terminal streaming session is asked to change."""

    def __init__(self, artifact_id: str, status: str, operation: str):
        self.artifact_id = artifact_id
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} artifact {artifact_id}: session is {status}")


class InvalidStepTransition(ValueError):
    """Raised when a plan step would move backwards or leave a final state."""

    def __init__(self, step_index: int, current: str, target: str):
        self.step_index = step_index
        self.current = current
        self.target = target
        super().__init__(f"Step {step_index}: illegal transition {current} -> {target}")


class UnknownKindError(KeyError):
    """Raised when an artifact kind is not registered."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown artifact kind: {kind!r}")
