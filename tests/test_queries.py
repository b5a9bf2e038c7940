"""
Tests for the read side: tag embedding, column ordering, filters, stats, cache.
"""
from datetime import date, timedelta

import pytest

from taskboard.errors import Unauthenticated
from taskboard.queries import BoardCache, assemble_tasks, board_columns, board_stats, filter_tasks
from taskboard.schema import Tag, Task, TaskPriority, TaskStatus
from taskboard.store import BoardSnapshot

TODAY = date(2026, 3, 2)


def _task(task_id, status=TaskStatus.NOT_STARTED, priority=TaskPriority.MEDIUM, text=None, **kwargs):
    return Task(id=task_id, text=text or task_id, status=status, priority=priority, **kwargs)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tag embedding
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_assemble_embeds_tags_in_link_order():
    ops = Tag(id="g1", name="ops", color="#111111")
    ui = Tag(id="g2", name="ui", color="#222222")
    snapshot = BoardSnapshot(
        tasks=[_task("t1"), _task("t2")],
        tag_links={"t1": ["g2", "g1"]},
        tags=[ops, ui],
    )
    tasks = assemble_tasks(snapshot)
    assert tasks[0].tags == [ui, ops]
    assert tasks[1].tags == []


def test_assemble_drops_unresolvable_tag_ids():
    ops = Tag(id="g1", name="ops", color="#111111")
    snapshot = BoardSnapshot(tasks=[_task("t1")], tag_links={"t1": ["gone", "g1"]}, tags=[ops])
    assert assemble_tasks(snapshot)[0].tags == [ops]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Columns
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_columns_sort_by_priority():
    tasks = [
        _task("low", priority=TaskPriority.LOW),
        _task("high", priority=TaskPriority.HIGH),
        _task("medium", priority=TaskPriority.MEDIUM),
    ]
    column = board_columns(tasks)[TaskStatus.NOT_STARTED]
    assert [t.id for t in column] == ["high", "medium", "low"]


def test_columns_keep_order_within_priority():
    tasks = [
        _task("newer", priority=TaskPriority.HIGH),
        _task("low", priority=TaskPriority.LOW),
        _task("older", priority=TaskPriority.HIGH),
    ]
    column = board_columns(tasks)[TaskStatus.NOT_STARTED]
    assert [t.id for t in column] == ["newer", "older", "low"]


def test_columns_group_by_status_in_board_order():
    tasks = [
        _task("a", status=TaskStatus.COMPLETED),
        _task("b", status=TaskStatus.AT_RISK),
    ]
    columns = board_columns(tasks)
    assert list(columns) == [
        TaskStatus.NOT_STARTED, TaskStatus.IN_PROGRESS, TaskStatus.AT_RISK, TaskStatus.COMPLETED,
    ]
    assert [t.id for t in columns[TaskStatus.AT_RISK]] == ["b"]
    assert columns[TaskStatus.IN_PROGRESS] == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Filters & stats
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_filter_by_text_and_description():
    tasks = [
        _task("t1", text="Fix login bug"),
        _task("t2", text="Write docs", description="Cover the LOGIN flow"),
        _task("t3", text="Deploy"),
    ]
    assert [t.id for t in filter_tasks(tasks, "login")] == ["t1", "t2"]
    assert [t.id for t in filter_tasks(tasks, "  ")] == ["t1", "t2", "t3"]


def test_filter_by_any_tag():
    ops = Tag(id="g1", name="ops", color="#111111")
    ui = Tag(id="g2", name="ui", color="#222222")
    tasks = [_task("t1", tags=[ops]), _task("t2", tags=[ui]), _task("t3")]
    assert [t.id for t in filter_tasks(tasks, tag_ids=["g1", "g2"])] == ["t1", "t2"]
    assert [t.id for t in filter_tasks(tasks, "t2", tag_ids=["g1"])] == []


def test_board_stats():
    tasks = [
        _task("late", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH,
              due_date=TODAY - timedelta(days=1)),
        _task("done", status=TaskStatus.COMPLETED, due_date=TODAY - timedelta(days=3)),
        _task("today", due_date=TODAY, priority=TaskPriority.LOW),
    ]
    stats = board_stats(tasks, today=TODAY)
    assert stats["total"] == 3
    assert stats["completed"] == 1
    assert stats["overdue"] == 1
    assert stats["by_status"] == {
        "not-started": 1, "in-progress": 1, "at-risk": 0, "completed": 1,
    }
    assert stats["by_priority"] == {"high": 1, "medium": 1, "low": 1}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Read service
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_unauthenticated_reads_fail(session_for):
    anonymous = session_for(None)
    for read in (
        anonymous.queries.list_active_tasks,
        anonymous.queries.list_archived_tasks,
        anonymous.queries.list_tags,
        anonymous.queries.list_workspaces,
    ):
        with pytest.raises(Unauthenticated):
            read()


def test_list_workspaces_with_roles(alice, bob):
    own = bob.queries.active_workspace_id()
    team = alice.queries.active_workspace_id()
    token = alice.actions.generate_invite_link({"workspace_id": team}).data["token"]
    bob.actions.join_workspace({"token": token})

    listed = [(w.id, w.role.value) for w in bob.queries.list_workspaces()]
    assert listed == [(own, "owner"), (team, "member")]


def test_cache_serves_repeat_reads_without_reloading(alice, store, monkeypatch):
    alice.actions.create_task({"text": "Cached"})
    assert [t.text for t in alice.queries.list_active_tasks()] == ["Cached"]

    loads = []
    original = store.load_board

    def counting(*args, **kwargs):
        loads.append(args)
        return original(*args, **kwargs)

    monkeypatch.setattr(store, "load_board", counting)
    assert [t.text for t in alice.queries.list_active_tasks()] == ["Cached"]
    assert loads == []


def test_cache_sees_writes_that_bypass_actions(alice, store):
    workspace_id = alice.queries.active_workspace_id()
    assert alice.queries.list_active_tasks() == []

    store.insert_task(workspace_id, "alice", "Direct")
    assert [t.text for t in alice.queries.list_active_tasks()] == ["Direct"]


def test_cache_ignores_snapshot_overtaken_by_concurrent_write(alice, store, monkeypatch):
    alice.queries.active_workspace_id()
    original = store.load_board

    def load_then_commit(workspace_id, archived=False):
        snapshot = original(workspace_id, archived)
        monkeypatch.setattr(store, "load_board", original)
        # Another request commits between the read and the cache fill
        assert alice.actions.create_task({"text": "concurrent"}).success
        return snapshot

    monkeypatch.setattr(store, "load_board", load_then_commit)
    assert alice.queries.list_active_tasks() == []
    assert [t.text for t in alice.queries.list_active_tasks()] == ["concurrent"]


def test_cache_is_per_workspace_and_versioned():
    cache = BoardCache()
    cache.put("w1", 3, [_task("t1")])
    cache.put("w2", 1, [])
    assert [t.id for t in cache.get("w1", 3)] == ["t1"]
    assert cache.get("w1", 4) is None

    cache.put("w1", 2, [])
    assert [t.id for t in cache.get("w1", 3)] == ["t1"]

    cache.invalidate("w1", action="create_task")
    assert cache.get("w1", 3) is None
    assert cache.get("w2", 1) == []
    cache.clear()
    assert cache.get("w2", 1) is None
