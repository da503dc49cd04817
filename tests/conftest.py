"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any, Mapping

import pytest

from artiflow.artifact.writer import ArtifactStore, StoreArtifactWriter


class RecordingWriter:
    """Writer that records every call as (op, artifact_id, payload)."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self.terminal_at: dict[str, int | None] = {}

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        self.calls.append(("data", artifact_id, dict(delta)))

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        self.calls.append(("metadata", artifact_id, dict(metadata)))

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        self.calls.append(("complete", artifact_id, None))
        self.terminal_at[artifact_id] = updated_at

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        self.calls.append(("error", artifact_id, message))
        self.terminal_at[artifact_id] = updated_at

    def ops(self) -> list[str]:
        return [op for op, _, _ in self.calls]


@pytest.fixture
def recorder() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def store() -> ArtifactStore:
    return ArtifactStore()


@pytest.fixture
def store_writer(store: ArtifactStore) -> StoreArtifactWriter:
    return StoreArtifactWriter(store)


def make_plan_steps(count: int) -> list[dict[str, Any]]:
    return [
        {
            "step": i + 1,
            "action": "navigate" if i == 0 else "click",
            "target": f"#target-{i}",
            "status": "pending",
            "reasoning": f"reason {i}",
        }
        for i in range(count)
    ]


@pytest.fixture
def plan_data() -> dict[str, Any]:
    """A complete, valid execution_plan payload."""
    return {
        "objective": "Navigate to GitHub and search for AI SDK",
        "approach": "Direct navigation and search",
        "totalSteps": 3,
        "completedSteps": 0,
        "steps": make_plan_steps(3),
        "progress": 0,
    }
