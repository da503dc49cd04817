"""
Artifact metadata and lifecycle status.

Metadata travels in the serialized envelope next to the kind-specific data.
Wire keys are camelCase; timestamps are integer milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Literal

# Lifecycle states
STATUS_STREAMING = "streaming"
STATUS_COMPLETE = "complete"
STATUS_ERROR = "error"

ArtifactStatus = Literal["streaming", "complete", "error"]

STATUSES = frozenset({STATUS_STREAMING, STATUS_COMPLETE, STATUS_ERROR})
TERMINAL_STATUSES = frozenset({STATUS_COMPLETE, STATUS_ERROR})

# Python attribute -> wire key
_WIRE_KEYS = {
    "id": "id",
    "type": "type",
    "version": "version",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "status": "status",
}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: str, target: str) -> bool:
    """Only `streaming -> complete` and `streaming -> error` are legal."""
    return current == STATUS_STREAMING and target in TERMINAL_STATUSES


@dataclass(frozen=True)
class ArtifactMetadata:
    """
    Identity and lifecycle state of one artifact instance.

    Instances are immutable; state changes produce a new value via
    `with_status()` / `touched()`.
    """

    id: str
    type: str
    version: int
    created_at: int
    updated_at: int
    status: str = STATUS_STREAMING

    def __post_init__(self) -> None:
        if self.status not in STATUSES:
            raise ValueError(f"Invalid status: {self.status}")
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")

    @property
    def terminal(self) -> bool:
        return is_terminal(self.status)

    def touched(self, timestamp_ms: int) -> ArtifactMetadata:
        """Bump updated_at, never moving it backwards."""
        return replace(self, updated_at=max(self.updated_at, timestamp_ms))

    def with_status(self, status: str, timestamp_ms: int) -> ArtifactMetadata:
        if not can_transition(self.status, status):
            raise ValueError(f"Illegal status transition: {self.status} -> {status}")
        return replace(self, status=status, updated_at=max(self.updated_at, timestamp_ms))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire (camelCase) form."""
        return {wire: getattr(self, attr) for attr, wire in _WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArtifactMetadata:
        """Reconstruct from the wire form."""
        if not isinstance(data, dict):
            raise ValueError("Artifact metadata must be an object")
        missing = [wire for wire in _WIRE_KEYS.values() if wire not in data]
        if missing:
            raise ValueError(f"Artifact metadata missing fields: {', '.join(missing)}")
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            version=_as_int(data["version"], "version"),
            created_at=_as_int(data["createdAt"], "createdAt"),
            updated_at=_as_int(data["updatedAt"], "updatedAt"),
            status=str(data["status"]),
        )


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Artifact metadata {name} must be an integer, got {value!r}")
    return value
