"""
Writers: the seam between streaming sessions and external stores.

A writer receives four calls per artifact id. Every call is a
non-destructive merge into an id-keyed mapping: updating one artifact never
removes or alters a sibling's entry, because several sessions typically
publish into the same container concurrently.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence

from .metadata import STATUS_COMPLETE, STATUS_ERROR
from .util import now_ms


class ArtifactWriter(Protocol):
    """Protocol for persisting streaming artifact state."""

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        ...

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        ...

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        """Mark complete. `updated_at` is the producer's timestamp; writers stamp now when it is None."""
        ...

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        ...


# -----------------------------------------------------------------------------
# Entries
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ArtifactEntry:
    """Stored state of one artifact: wire-form metadata, merged data, error text."""

    metadata: Mapping[str, Any] = field(default_factory=dict)
    data: Mapping[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def status(self) -> str | None:
        return self.metadata.get("status")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "metadata": copy.deepcopy(dict(self.metadata)),
            "data": copy.deepcopy(dict(self.data)),
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ArtifactEntry:
        data = data or {}
        return cls(
            metadata=dict(data.get("metadata") or {}),
            data=dict(data.get("data") or {}),
            error=data.get("error"),
        )


def merge_entry_data(entry: ArtifactEntry, delta: Mapping[str, Any]) -> ArtifactEntry:
    return replace(entry, data={**entry.data, **copy.deepcopy(dict(delta))})


def merge_entry_metadata(entry: ArtifactEntry, metadata: Mapping[str, Any]) -> ArtifactEntry:
    merged = {**entry.metadata, **dict(metadata)}
    # updatedAt never moves backwards in a stored entry.
    previous = entry.metadata.get("updatedAt")
    if isinstance(previous, int) and isinstance(merged.get("updatedAt"), int):
        merged["updatedAt"] = max(previous, merged["updatedAt"])
    return replace(entry, metadata=merged)


def complete_entry(entry: ArtifactEntry, timestamp_ms: int) -> ArtifactEntry:
    return merge_entry_metadata(entry, {"status": STATUS_COMPLETE, "updatedAt": timestamp_ms})


def fail_entry(entry: ArtifactEntry, message: str, timestamp_ms: int) -> ArtifactEntry:
    failed = merge_entry_metadata(entry, {"status": STATUS_ERROR, "updatedAt": timestamp_ms})
    return replace(failed, error=message)


# -----------------------------------------------------------------------------
# In-memory store
# -----------------------------------------------------------------------------

StoreListener = Callable[[str, Mapping[str, ArtifactEntry]], None]


class ArtifactStore:
    """
    Copy-on-write mapping of artifact id -> ArtifactEntry.

    Each write swaps in a new read-only top-level mapping holding a new entry
    for the touched id; all other entries are carried over as the same
    objects. Readers holding an earlier `entries()` view never see it change.
    """

    def __init__(self, entries: Mapping[str, ArtifactEntry] | None = None):
        self._entries: Mapping[str, ArtifactEntry] = MappingProxyType(dict(entries or {}))
        self._listeners: list[StoreListener] = []

    def entries(self) -> Mapping[str, ArtifactEntry]:
        return self._entries

    def get(self, artifact_id: str) -> ArtifactEntry | None:
        return self._entries.get(artifact_id)

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def apply(self, artifact_id: str, updater: Callable[[ArtifactEntry], ArtifactEntry]) -> ArtifactEntry:
        """Replace one entry with `updater(existing)`; siblings are untouched."""
        existing = self._entries.get(artifact_id) or ArtifactEntry()
        updated = updater(existing)
        self._entries = MappingProxyType({**self._entries, artifact_id: updated})
        for listener in list(self._listeners):
            listener(artifact_id, self._entries)
        return updated

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Called with `(artifact_id, entries)` after every write."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {artifact_id: entry.to_dict() for artifact_id, entry in self._entries.items()}


class StoreArtifactWriter:
    """Writer backed by an ArtifactStore."""

    def __init__(self, store: ArtifactStore | None = None):
        self.store = store if store is not None else ArtifactStore()

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        self.store.apply(artifact_id, lambda e: merge_entry_data(e, delta))

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        self.store.apply(artifact_id, lambda e: merge_entry_metadata(e, metadata))

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        ts = now_ms() if updated_at is None else updated_at
        self.store.apply(artifact_id, lambda e: complete_entry(e, ts))

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        ts = now_ms() if updated_at is None else updated_at
        self.store.apply(artifact_id, lambda e: fail_entry(e, message, ts))


# -----------------------------------------------------------------------------
# Chat message writer
# -----------------------------------------------------------------------------

Message = dict[str, Any]


class UIMessageWriter(Protocol):
    """Owner of a chat transcript whose last message carries artifacts."""

    def update_last_message(self, updater: Callable[[Message], Message]) -> None:
        ...

    def push_message(self, message: Message) -> None:
        ...


class MessageLog:
    """Minimal in-memory transcript implementing UIMessageWriter."""

    def __init__(self, messages: Sequence[Message] | None = None):
        self.messages: list[Message] = list(messages or [])

    def update_last_message(self, updater: Callable[[Message], Message]) -> None:
        if not self.messages:
            raise IndexError("No message to update")
        self.messages[-1] = updater(self.messages[-1])

    def push_message(self, message: Message) -> None:
        self.messages.append(message)


class MessageArtifactWriter:
    """
    Writer that stores artifacts under the last message's `artifacts` mapping.

    Messages are replaced, never mutated: each call builds a new message with
    a new `artifacts` dict that carries sibling entries over unchanged.
    """

    def __init__(self, message_writer: UIMessageWriter):
        self.message_writer = message_writer

    def _apply(self, artifact_id: str, updater: Callable[[ArtifactEntry], ArtifactEntry]) -> None:
        def update_message(message: Message) -> Message:
            artifacts = message.get("artifacts") or {}
            entry = updater(ArtifactEntry.from_dict(artifacts.get(artifact_id)))
            return {**message, "artifacts": {**artifacts, artifact_id: entry.to_dict()}}

        self.message_writer.update_last_message(update_message)

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        self._apply(artifact_id, lambda e: merge_entry_data(e, delta))

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        self._apply(artifact_id, lambda e: merge_entry_metadata(e, metadata))

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        ts = now_ms() if updated_at is None else updated_at
        self._apply(artifact_id, lambda e: complete_entry(e, ts))

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        ts = now_ms() if updated_at is None else updated_at
        self._apply(artifact_id, lambda e: fail_entry(e, message, ts))


# -----------------------------------------------------------------------------
# Combinators
# -----------------------------------------------------------------------------


class CompositeArtifactWriter:
    """
    Fan each call out to several writers, in order.

    e.g. a UI store plus a journal trace.
    """

    def __init__(self, writers: Sequence[ArtifactWriter]):
        self.writers = list(writers)

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        for writer in self.writers:
            writer.write_data(artifact_id, delta)

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        for writer in self.writers:
            writer.write_metadata(artifact_id, metadata)

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        for writer in self.writers:
            writer.write_complete(artifact_id, updated_at)

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        for writer in self.writers:
            writer.write_error(artifact_id, message, updated_at)


class NullArtifactWriter:
    """Discards everything (sessions used purely through subscribe())."""

    def write_data(self, artifact_id: str, delta: Mapping[str, Any]) -> None:
        pass

    def write_metadata(self, artifact_id: str, metadata: Mapping[str, Any]) -> None:
        pass

    def write_complete(self, artifact_id: str, updated_at: int | None = None) -> None:
        pass

    def write_error(self, artifact_id: str, message: str, updated_at: int | None = None) -> None:
        pass
