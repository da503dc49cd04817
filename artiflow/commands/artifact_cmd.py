"""Artifact CLI commands: kind registry, envelope validation, journal replay."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ..artifact.errors import ArtifactValidationError
from ..artifact.journal import ArtifactJournal
from ..artifact.kinds import KIND_METADATA, KINDS, get_descriptor, list_kinds


def _format_ms(value: Any) -> str:
    if not isinstance(value, (int, float)):
        return ""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def run_kinds(*, output_json: bool = False) -> int:
    rows: list[dict[str, Any]] = []
    for kind, descriptor in sorted(KINDS.items(), key=lambda item: item[0]):
        meta = KIND_METADATA.get(kind, {})
        rows.append(
            {
                "kind": kind,
                "version": descriptor.version,
                "description": descriptor.description,
                "defaults": sorted(descriptor.default_data.keys()),
                "derived_fields": meta.get("derived_fields", []),
            }
        )

    if output_json:
        print(json.dumps(rows, indent=2))
        return 0

    table = Table(title="Artifact kinds")
    table.add_column("kind", style="cyan", no_wrap=True)
    table.add_column("version", justify="right")
    table.add_column("description")
    table.add_column("defaults", style="dim")
    table.add_column("derived", style="magenta")
    for row in rows:
        table.add_row(
            row["kind"],
            str(row["version"]),
            row["description"],
            ", ".join(row["defaults"]),
            ", ".join(row["derived_fields"]),
        )
    Console().print(table)
    return 0


def run_validate(kind: str, path: Path, *, output_json: bool = False) -> int:
    """Validate an envelope (or bare data object) file. 0 valid, 1 invalid, 2 unknown kind."""
    err = Console(stderr=True)
    descriptor = get_descriptor(kind)
    if descriptor is None:
        err.print(f"Unknown artifact kind: {kind} (known: {', '.join(list_kinds())})", style="bold red")
        return 2

    try:
        text = path.read_text(encoding="utf-8")
        raw = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        err.print(f"{path}: invalid JSON: {e}", style="bold red")
        return 1

    artifact_id: str | None = None
    try:
        if isinstance(raw, dict) and "metadata" in raw and "data" in raw:
            artifact = descriptor.parse(text)
            artifact_id = artifact.metadata.id
            artifact.validate_result().unwrap()
        else:
            descriptor.validate(raw)
    except ArtifactValidationError as e:
        if output_json:
            print(json.dumps({"valid": False, "kind": kind, "artifact_id": artifact_id, "issues": e.issues}, indent=2))
        else:
            err.print(f"{path}: invalid {kind}", style="bold red")
            for issue in e.issues:
                err.print(f"  {issue['loc']}: {issue['msg']}")
        return 1
    except ValueError as e:
        err.print(f"{path}: {e}", style="bold red")
        return 1

    if output_json:
        print(json.dumps({"valid": True, "kind": kind, "artifact_id": artifact_id, "issues": []}, indent=2))
    else:
        Console().print(f"{path}: valid {kind}", style="green")
    return 0


def run_replay(journal_path: Path, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    if not journal_path.exists():
        err.print(f"Journal not found: {journal_path}", style="bold red")
        return 1

    try:
        store = ArtifactJournal(journal_path).replay()
    except ValueError as e:
        err.print(str(e), style="bold red")
        return 1

    if output_json:
        print(json.dumps(store.to_dict(), indent=2, sort_keys=True))
        return 0

    table = Table(title=f"Artifacts ({journal_path.name})")
    table.add_column("artifact_id", style="cyan", no_wrap=True)
    table.add_column("kind", style="magenta")
    table.add_column("status")
    table.add_column("updated")
    table.add_column("error", style="red")

    status_styles = {"streaming": "yellow", "complete": "green", "error": "red"}
    for artifact_id, entry in store.entries().items():
        status = str(entry.metadata.get("status", ""))
        table.add_row(
            artifact_id,
            str(entry.metadata.get("type", "")),
            f"[{status_styles.get(status, 'white')}]{status}[/]",
            _format_ms(entry.metadata.get("updatedAt")),
            entry.error or "",
        )
    Console().print(table)
    return 0


def run_show(journal_path: Path, artifact_id: str) -> int:
    err = Console(stderr=True)
    if not journal_path.exists():
        err.print(f"Journal not found: {journal_path}", style="bold red")
        return 1

    try:
        entry = ArtifactJournal(journal_path).replay().get(artifact_id)
    except ValueError as e:
        err.print(str(e), style="bold red")
        return 1
    if entry is None:
        err.print(f"Artifact not found: {artifact_id}", style="bold red")
        return 1

    print(json.dumps(entry.to_dict(), indent=2, sort_keys=True))
    return 0
