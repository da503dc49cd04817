"""Journal writer and replay."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from artiflow.artifact import (
    EXECUTION_PLAN,
    TOOL_RESULTS,
    CompositeArtifactWriter,
    add_tool_result,
    update_execution_plan_progress,
)
from artiflow.artifact.journal import (
    OP_COMPLETE,
    OP_DATA,
    OP_ERROR,
    OP_METADATA,
    ArtifactJournal,
    JournalArtifactWriter,
    JournalEntry,
    create_entry,
)


def test_entry_json_roundtrip():
    entry = create_entry(OP_DATA, "execution_plan_01", {"objective": "o"})
    line = entry.to_json()

    assert "\n" not in line
    restored = JournalEntry.from_json(line)
    assert restored == entry
    assert restored.timestamp.tzinfo is not None


def test_empty_payload_is_omitted():
    entry = JournalEntry(OP_COMPLETE, "a", datetime(2024, 1, 1, tzinfo=timezone.utc))
    assert "payload" not in entry.to_dict()


def test_invalid_op_rejected():
    with pytest.raises(ValueError, match="Invalid journal op"):
        JournalEntry("delete", "a", datetime.now(timezone.utc))


def test_journal_records_every_writer_call(tmp_path: Path, plan_data):
    journal = ArtifactJournal(tmp_path / "logs" / "journal.jsonl")
    session = EXECUTION_PLAN.stream(JournalArtifactWriter(journal))
    session.update(plan_data)
    session.complete()

    ops = [entry.op for entry in journal.iter_entries()]
    assert ops == [OP_METADATA, OP_DATA, OP_METADATA, OP_COMPLETE]
    assert journal.artifact_ids() == [session.id]


def test_replay_matches_live_store(tmp_path: Path, store, store_writer, plan_data):
    journal = ArtifactJournal(tmp_path / "journal.jsonl")
    writer = CompositeArtifactWriter([store_writer, JournalArtifactWriter(journal)])

    plan = EXECUTION_PLAN.stream(writer)
    tools = TOOL_RESULTS.stream(writer)
    plan.update(plan_data)
    update_execution_plan_progress(plan, 0, "completed", "done")
    add_tool_result(tools, "navigate", {"url": "https://github.com"}, None, 100, True)
    tools.error("Execution failed")
    plan.complete()

    replayed = journal.replay()
    assert replayed.to_dict() == store.to_dict()
    assert replayed.get(tools.id).error == "Execution failed"
    assert replayed.get(plan.id).status == "complete"


def test_missing_journal_replays_empty(tmp_path: Path):
    journal = ArtifactJournal(tmp_path / "absent.jsonl")
    assert list(journal.iter_entries()) == []
    assert len(journal.replay()) == 0


def test_malformed_line_reports_location(tmp_path: Path):
    path = tmp_path / "journal.jsonl"
    good = create_entry(OP_ERROR, "a", {"message": "boom", "updatedAt": 5}).to_json()
    path.write_text(good + "\n\n{not json\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"journal.jsonl:3: malformed journal entry"):
        ArtifactJournal(path).replay()


@pytest.mark.parametrize(
    "line",
    [
        "[1, 2]",
        '{"op": "data", "artifact_id": "a", "timestamp": null}',
        '{"op": "data", "artifact_id": "a", "timestamp": "2024-01-01T00:00:00+00:00", "payload": [1]}',
    ],
)
def test_wrongly_typed_lines_are_malformed(tmp_path: Path, line: str):
    path = tmp_path / "journal.jsonl"
    path.write_text(line + "\n", encoding="utf-8")

    with pytest.raises(ValueError, match="malformed journal entry"):
        list(ArtifactJournal(path).iter_entries())


def test_terminal_entry_needs_integer_timestamp(tmp_path: Path):
    journal = ArtifactJournal(tmp_path / "journal.jsonl")
    journal.append(create_entry(OP_COMPLETE, "a", {"updatedAt": "soon"}))

    with pytest.raises(ValueError, match="updatedAt"):
        journal.replay()


def test_append_many_writes_one_line_per_entry(tmp_path: Path):
    journal = ArtifactJournal(tmp_path / "journal.jsonl")
    journal.append_many([create_entry(OP_DATA, "a", {"x": 1}), create_entry(OP_DATA, "b", {"y": 2})])
    journal.append_many([])

    lines = journal.path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["artifact_id"] for line in lines] == ["a", "b"]
