"""
Tests for the domain model: overdue rule, priority ranking, completion projections.
"""
from datetime import date, datetime, timedelta, timezone

from taskboard.schema import (
    Invite,
    Note,
    Subtask,
    SubtaskStatus,
    Tag,
    Task,
    TaskPriority,
    TaskStatus,
    parse_date,
)

TODAY = date(2026, 3, 2)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Overdue
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_due_yesterday_in_progress_is_overdue():
    task = Task(id="t1", text="Ship", status=TaskStatus.IN_PROGRESS,
                due_date=TODAY - timedelta(days=1))
    assert task.is_overdue(TODAY)


def test_due_yesterday_completed_is_not_overdue():
    task = Task(id="t1", text="Ship", status=TaskStatus.COMPLETED,
                due_date=TODAY - timedelta(days=1))
    assert not task.is_overdue(TODAY)


def test_due_today_is_not_overdue():
    task = Task(id="t1", text="Ship", status=TaskStatus.IN_PROGRESS, due_date=TODAY)
    assert not task.is_overdue(TODAY)


def test_no_due_date_is_never_overdue():
    assert not Task(id="t1", text="Ship").is_overdue(TODAY)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Enumerations & projections
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_priority_rank_orders_high_medium_low():
    ranked = sorted(TaskPriority, key=lambda p: p.rank)
    assert ranked == [TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW]


def test_from_str_falls_back_to_defaults():
    assert TaskStatus.from_str("done") == TaskStatus.NOT_STARTED
    assert TaskPriority.from_str("urgent") == TaskPriority.MEDIUM
    assert SubtaskStatus.from_str("?") == SubtaskStatus.PENDING


def test_completed_is_derived_from_status():
    task = Task(id="t1", text="Ship")
    assert not task.completed
    task.status = TaskStatus.COMPLETED
    assert task.completed

    subtask = Subtask(id="s1", text="Step", status=SubtaskStatus.COMPLETED)
    assert subtask.completed
    assert "completed" not in subtask.to_dict()


def test_new_task_defaults():
    task = Task(id="t1", text="Ship")
    assert task.status == TaskStatus.NOT_STARTED
    assert task.priority == TaskPriority.MEDIUM
    assert task.archived is False
    assert task.tags == [] and task.subtasks == [] and task.notes == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Serialization
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_task_to_dict_embeds_tags_and_lists():
    task = Task(
        id="t1",
        text="Ship",
        priority=TaskPriority.HIGH,
        due_date=date(2026, 4, 1),
        tags=[Tag(id="g1", name="ops", color="#ff0000")],
        subtasks=[Subtask(id="s1", text="Build")],
        notes=[Note(id="n1", text="Started",
                    created_at=datetime(2026, 3, 1, tzinfo=timezone.utc))],
    )
    data = task.to_dict()
    assert data["priority"] == "high"
    assert data["due_date"] == "2026-04-01"
    assert data["tags"] == [{"id": "g1", "name": "ops", "color": "#ff0000"}]
    assert data["subtasks"] == [{"id": "s1", "text": "Build", "status": "pending"}]
    assert data["notes"][0]["created_at"].startswith("2026-03-01T00:00:00")
    assert task.tag_ids == ["g1"]


def test_note_round_trip():
    note = Note(id="n1", text="Hi", created_at=datetime(2026, 3, 1, 8, tzinfo=timezone.utc))
    assert Note.from_dict(note.to_dict()) == note


def test_invite_validity_is_strict():
    expires = datetime(2026, 3, 9, tzinfo=timezone.utc)
    invite = Invite(id="i1", token="tok", workspace_id="w1", created_by="u1", expires_at=expires)
    assert invite.is_valid(expires - timedelta(seconds=1))
    assert not invite.is_valid(expires)


def test_parse_date_accepts_empty_and_iso():
    assert parse_date(None) is None
    assert parse_date("") is None
    assert parse_date("2026-03-02") == date(2026, 3, 2)
