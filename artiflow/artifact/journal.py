"""
Append-only JSONL journal of writer traffic.

Each line is one writer call. The journal never modifies existing lines;
current artifact state is computed by replaying entries into an
ArtifactStore. It is a debugging trace, not a durability guarantee.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

from .util import now_ms
from .writer import (
    ArtifactStore,
    complete_entry,
    fail_entry,
    merge_entry_data,
    merge_entry_metadata,
)

# Journal operations (one per writer call)
OP_DATA = "data"
OP_METADATA = "metadata"
OP_COMPLETE = "complete"
OP_ERROR = "error"

OPS = frozenset({OP_DATA, OP_METADATA, OP_COMPLETE, OP_ERROR})


@dataclass(frozen=True)
class JournalEntry:
    """One recorded writer call."""

    op: str
    artifact_id: str
    timestamp: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.op not in OPS:
            raise ValueError(f"Invalid journal op: {self.op}")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "op": self.op,
            "artifact_id": self.artifact_id,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.payload:
            result["payload"] = self.payload
        return result

    def to_json(self) -> str:
        """Serialize to JSON string (single line)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEntry:
        if not isinstance(data, dict):
            raise ValueError("journal entry must be a JSON object")
        timestamp = data["timestamp"]
        payload = data.get("payload", {})
        if not isinstance(timestamp, str):
            raise ValueError(f"timestamp must be an ISO string, got {timestamp!r}")
        if not isinstance(payload, dict):
            raise ValueError("payload must be a JSON object")
        return cls(
            op=data["op"],
            artifact_id=str(data["artifact_id"]),
            timestamp=datetime.fromisoformat(timestamp),
            payload=payload,
        )

    @classmethod
    def from_json(cls, line: str) -> JournalEntry:
        return cls.from_dict(json.loads(line))


def create_entry(op: str, artifact_id: str, payload: Mapping[str, Any] | None = None) -> JournalEntry:
    return JournalEntry(
        op=op,
        artifact_id=artifact_id,
        timestamp=datetime.now(timezone.utc),
        payload=dict(payload or {}),
    )


class ArtifactJournal:
    """
    Append-only journal file.

    INVARIANT: This class NEVER modifies existing lines.
    The only write operations are append() and append_many().
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, entry: JournalEntry) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(entry.to_json() + "\n")

    def append_many(self, entries: Sequence[JournalEntry]) -> None:
        """Append several entries in a single file operation."""
        if not entries:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            for entry in entries:
                f.write(entry.to_json() + "\n")

    def iter_entries(self) -> Iterator[JournalEntry]:
        """Entries in append order."""
        if not self.path.exists():
            return

        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield JournalEntry.from_json(line)
                except (ValueError, KeyError) as e:
                    raise ValueError(f"{self.path}:{lineno}: malformed journal entry: {e}") from e

    def artifact_ids(self) -> list[str]:
        """Artifact ids in order of first appearance."""
        seen: dict[str, None] = {}
        for entry in self.iter_entries():
            seen.setdefault(entry.artifact_id, None)
        return list(seen)

    def replay(self, store: ArtifactStore | None = None) -> ArtifactStore:
        """Fold every entry into `store` (a new one by default)."""
        store = store if store is not None else ArtifactStore()
        for entry in self.iter_entries():
            _apply_entry(store, entry)
        return store


def _updated_at(entry: JournalEntry) -> int:
    value = entry.payload.get("updatedAt", 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{entry.op} entry for {entry.artifact_id} has a non-integer updatedAt: {value!r}")
    return value


def _apply_entry(store: ArtifactStore, entry: JournalEntry) -> None:
    payload = entry.payload
    if entry.op == OP_DATA:
        store.apply(entry.artifact_id, lambda e: merge_entry_data(e, payload))
    elif entry.op == OP_METADATA:
        store.apply(entry.artifact_id, lambda e: merge_entry_metadata(e, payload))
    elif entry.op == OP_COMPLETE:
        ts = _updated_at(entry)
        store.apply(entry.artifact_id, lambda e: complete_entry(e, ts))
    elif entry.op == OP_ERROR:
        ts = _updated_at(entry)
        message = str(payload.get("message", ""))
        store.apply(entry.artifact_id, lambda e: fail_entry(e, message, ts))


class JournalArtifactWriter:
    """Writer that records every call to an ArtifactJournal."""

    def __init__(self, journal: ArtifactJournal):
        self.journal = journal

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        self.journal.append(create_entry(OP_DATA, artifact_id, delta))

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        self.journal.append(create_entry(OP_METADATA, artifact_id, metadata))

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        ts = now_ms() if updated_at is None else updated_at
        self.journal.append(create_entry(OP_COMPLETE, artifact_id, {"updatedAt": ts}))

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        ts = now_ms() if updated_at is None else updated_at
        self.journal.append(create_entry(OP_ERROR, artifact_id, {"message": message, "updatedAt": ts}))
