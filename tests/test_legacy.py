"""
Tests for the one-time legacy export import.
"""
import json
from datetime import datetime, timezone

import pytest

import import_legacy
from taskboard.legacy import DEFAULT_TAG_COLOR, import_legacy as run_import, normalize_export, normalize_legacy_task
from taskboard.schema import SubtaskStatus, TaskPriority, TaskStatus

LOCAL_STORAGE_EXPORT = [
    {"id": 1718000000000, "text": "Buy milk", "completed": True},
    {"id": 1718000060000, "text": "Call plumber", "completed": False},
    {"id": 1718000120000, "text": "   ", "completed": False},
]

SHARED_EXPORT = {
    "tags": [
        {"id": "t-1", "name": "home", "color": "#22c55e"},
        {"id": "t-2", "name": "work", "color": "blue"},
    ],
    "tasks": [
        {
            "id": "a1",
            "text": "Plan sprint",
            "description": "Next two weeks",
            "status": "in-progress",
            "completed": True,
            "priority": "high",
            "dueDate": "2026-04-01",
            "tags": ["t-2", {"name": "urgent"}],
            "subtasks": [
                {"id": "s1", "text": "Gather tickets", "completed": True},
                {"id": "s2", "text": "Estimate"},
                {"id": "bad id!", "text": "Schedule", "status": "in-progress"},
            ],
            "notes": [
                {"id": "n1", "text": "Kickoff booked", "createdAt": "2026-02-20T09:00:00Z"},
                "Plain string note",
            ],
            "archived": False,
            "createdAt": "2026-02-19T08:00:00Z",
        },
        {"id": "a2", "text": "Old chore", "status": "completed", "archived": True},
    ],
}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Normalization
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_completed_boolean_becomes_status():
    records, _ = normalize_export(LOCAL_STORAGE_EXPORT)
    assert [(r["text"], r["status"]) for r in records] == [
        ("Buy milk", TaskStatus.COMPLETED.value),
        ("Call plumber", TaskStatus.NOT_STARTED.value),
    ]


def test_local_storage_id_is_creation_time():
    record = normalize_legacy_task(LOCAL_STORAGE_EXPORT[0])
    assert record["created_at"] == datetime.fromtimestamp(1718000000, tz=timezone.utc)


def test_untitled_entries_are_skipped():
    assert normalize_legacy_task({"text": "  "}) is None
    records, _ = normalize_export(LOCAL_STORAGE_EXPORT)
    assert len(records) == 2


def test_explicit_status_wins_over_boolean():
    records, _ = normalize_export(SHARED_EXPORT)
    assert records[0]["status"] == TaskStatus.IN_PROGRESS.value


def test_shared_export_fields():
    records, tag_colors = normalize_export(SHARED_EXPORT)
    plan = records[0]

    assert plan["priority"] == TaskPriority.HIGH.value
    assert plan["due_date"] == "2026-04-01"
    assert plan["tag_names"] == ["work", "urgent"]
    assert [s["status"] for s in plan["subtasks"]] == [
        SubtaskStatus.COMPLETED.value,
        SubtaskStatus.PENDING.value,
        SubtaskStatus.IN_PROGRESS.value,
    ]
    assert plan["subtasks"][2]["id"] != "bad id!"
    assert [n["text"] for n in plan["notes"]] == ["Kickoff booked", "Plain string note"]
    assert plan["notes"][0]["created_at"] == "2026-02-20T09:00:00+00:00"
    assert records[1]["archived"] is True

    assert tag_colors == {"home": "#22c55e", "work": DEFAULT_TAG_COLOR, "urgent": DEFAULT_TAG_COLOR}


def test_bad_due_date_is_dropped():
    record = normalize_legacy_task({"text": "x", "dueDate": "next week"})
    assert record["due_date"] is None


def test_unknown_shape_is_rejected():
    with pytest.raises(ValueError):
        normalize_export("tasks")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Import into a workspace
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_import_into_workspace(alice, store):
    workspace_id = alice.queries.active_workspace_id()
    assert run_import(store, workspace_id, "alice", SHARED_EXPORT) == 2

    active = alice.queries.list_active_tasks()
    assert [t.text for t in active] == ["Plan sprint"]
    plan = active[0]
    assert plan.status == TaskStatus.IN_PROGRESS
    assert [t.name for t in plan.tags] == ["work", "urgent"]
    assert plan.subtasks[0].completed
    assert plan.created_at == datetime(2026, 2, 19, 8, tzinfo=timezone.utc)

    assert [t.text for t in alice.queries.list_archived_tasks()] == ["Old chore"]
    assert sorted(t.name for t in alice.queries.list_tags()) == ["home", "urgent", "work"]


def test_import_keeps_existing_tag_colour(alice, store):
    alice.actions.create_tag({"name": "home", "color": "#000000"})
    workspace_id = alice.queries.active_workspace_id()
    run_import(store, workspace_id, "alice", SHARED_EXPORT)

    colours = {t.name: t.color for t in alice.queries.list_tags()}
    assert colours["home"] == "#000000"


def test_cli_imports_file(tmp_path, capsys):
    export = tmp_path / "tasks.json"
    export.write_text(json.dumps(LOCAL_STORAGE_EXPORT))
    db_path = tmp_path / "cli.db"

    code = import_legacy.main([
        str(export), "--user", "alice", "--db", str(db_path),
        "--config", str(tmp_path / "missing.yaml"),
    ])
    assert code == 0
    assert "Imported 2 tasks" in capsys.readouterr().out


def test_cli_rejects_foreign_workspace(tmp_path, capsys):
    export = tmp_path / "tasks.json"
    export.write_text("[]")

    code = import_legacy.main([
        str(export), "--user", "alice", "--workspace", "not-a-member",
        "--db", str(tmp_path / "cli.db"), "--config", str(tmp_path / "missing.yaml"),
    ])
    assert code == 1
    assert "Not a member of this workspace" in capsys.readouterr().err
