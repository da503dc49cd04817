"""Writers and the copy-on-write artifact store."""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from artiflow.artifact import (
    APPEND,
    EXECUTION_PLAN,
    PAGE_CONTEXT,
    TOOL_RESULTS,
    ArtifactModel,
    ArtifactStore,
    CompositeArtifactWriter,
    MessageArtifactWriter,
    MessageLog,
    StoreArtifactWriter,
    add_tool_result,
    define,
)
from artiflow.artifact.journal import ArtifactJournal, JournalArtifactWriter


class Checklist(ArtifactModel):
    title: str
    items: list[str]


CHECKLIST = define("checklist", Checklist, {"items": []}, merge_policy={"items": APPEND})


def test_store_writer_mirrors_session(store, store_writer, plan_data):
    session = EXECUTION_PLAN.stream(store_writer)
    session.update(plan_data)

    entry = store.get(session.id)
    assert entry is not None
    assert entry.status == "streaming"
    assert entry.data == plan_data
    assert entry.metadata["type"] == "execution_plan"

    session.complete()
    entry = store.get(session.id)
    assert entry.status == "complete"
    assert entry.metadata["updatedAt"] == session.metadata.updated_at


def test_store_writer_records_error(store, store_writer):
    session = TOOL_RESULTS.stream(store_writer)
    session.error("Execution failed")

    entry = store.get(session.id)
    assert entry.status == "error"
    assert entry.error == "Execution failed"
    assert entry.to_dict()["error"] == "Execution failed"


def test_updating_one_artifact_leaves_siblings_identical(store, store_writer, plan_data):
    plan = EXECUTION_PLAN.stream(store_writer)
    tools = TOOL_RESULTS.stream(store_writer)
    page = PAGE_CONTEXT.stream(store_writer)
    plan.update(plan_data)
    page.update({"title": "Example"})

    before = store.entries()
    tools_before = before[tools.id]
    page_before = store.get(page.id).to_dict()

    add_tool_result(tools, "navigate", {"url": "https://example.com"}, {"ok": True}, 120, True)
    plan.update({"approach": "changed"})

    after = store.entries()
    assert after[page.id] is before[page.id]
    assert after[page.id].to_dict() == page_before
    assert after[tools.id] is not tools_before
    # Earlier views are immutable snapshots.
    assert before[plan.id].data["approach"] == plan_data["approach"]
    assert len(after) == 3


def test_store_entries_are_read_only(store, store_writer):
    EXECUTION_PLAN.stream(store_writer)
    with pytest.raises(TypeError):
        store.entries()["x"] = None  # type: ignore[index]


def test_store_listeners_are_notified(store, store_writer):
    seen: list[str] = []
    unsubscribe = store.subscribe(lambda artifact_id, entries: seen.append(artifact_id))

    session = EXECUTION_PLAN.stream(store_writer)
    session.update({"objective": "o"})
    unsubscribe()
    session.update({"objective": "p"})

    assert seen == [session.id, session.id, session.id]


def test_message_writer_keeps_sibling_artifacts(plan_data):
    log = MessageLog([{"role": "assistant", "content": "working"}])
    writer = MessageArtifactWriter(log)

    plan = EXECUTION_PLAN.stream(writer)
    tools = TOOL_RESULTS.stream(writer)
    plan.update(plan_data)
    add_tool_result(tools, "click", {"selector": "#go"}, None, 50, False, error="not found")
    tools.error("Execution failed")

    message = log.messages[-1]
    assert message["content"] == "working"
    artifacts = message["artifacts"]
    assert set(artifacts) == {plan.id, tools.id}
    assert artifacts[plan.id]["data"] == plan_data
    assert artifacts[plan.id]["metadata"]["status"] == "streaming"
    assert artifacts[tools.id]["metadata"]["status"] == "error"
    assert artifacts[tools.id]["error"] == "Execution failed"
    assert artifacts[tools.id]["data"]["summary"]["errorCount"] == 1


def test_message_writer_replaces_messages():
    first = {"role": "assistant", "content": ""}
    log = MessageLog([first])
    EXECUTION_PLAN.stream(MessageArtifactWriter(log))

    assert "artifacts" not in first
    assert log.messages[-1] is not first


def test_message_log_requires_a_message():
    with pytest.raises(IndexError):
        MessageLog().update_last_message(lambda m: m)


def test_composite_writer_fans_out(recorder):
    store = ArtifactStore()
    writer = CompositeArtifactWriter([StoreArtifactWriter(store), recorder])

    session = EXECUTION_PLAN.stream(writer)
    session.update({"objective": "o"})
    session.complete()

    assert store.get(session.id).status == "complete"
    assert recorder.ops() == ["metadata", "data", "metadata", "complete"]


# -----------------------------------------------------------------------------
# Consistency between session, store and journal
# -----------------------------------------------------------------------------


def test_append_fields_reach_writers_merged(tmp_path: Path, store, store_writer):
    journal = ArtifactJournal(tmp_path / "journal.jsonl")
    session = CHECKLIST.stream(CompositeArtifactWriter([store_writer, JournalArtifactWriter(journal)]))
    seen: list[list[str]] = []
    session.subscribe(lambda value: seen.append(value["items"]))

    session.update({"title": "release", "items": ["a"]})
    session.update({"items": ["b"]})
    session.update({"items": ["c"]})

    assert session.current["items"] == ["a", "b", "c"]
    assert seen[-1] == ["a", "b", "c"]
    assert store.get(session.id).data == session.current
    assert journal.replay().get(session.id).data == session.current


def test_stored_updated_at_never_goes_backwards(monkeypatch, store, store_writer, plan_data):
    clock = itertools.count(1000)
    monkeypatch.setattr("artiflow.artifact.session.now_ms", lambda: next(clock))
    monkeypatch.setattr("artiflow.artifact.writer.now_ms", lambda: next(clock))

    stamps: list[int] = []
    store.subscribe(lambda artifact_id, entries: stamps.append(entries[artifact_id].metadata["updatedAt"]))

    session = EXECUTION_PLAN.stream(store_writer)
    session.update(plan_data)
    session.update({"approach": "changed"})
    final = session.complete()

    assert stamps == sorted(stamps)
    assert stamps[-1] == final.metadata.updated_at
    assert store.get(session.id).metadata["updatedAt"] == final.metadata.updated_at


def test_store_keeps_updated_at_monotonic_for_late_writes(store_writer, store):
    store_writer.write_metadata("a", {"status": "streaming", "updatedAt": 20})
    store_writer.write_complete("a", updated_at=15)

    entry = store.get("a")
    assert entry.status == "complete"
    assert entry.metadata["updatedAt"] == 20
