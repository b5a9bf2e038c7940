"""
Read models for board rendering.

Tasks are stored with tag references; reads embed the full Tag objects by
joining those references against the workspace's tag set. References that no
longer resolve are dropped, never returned as broken entries.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import Unauthenticated
from .schema import Task, TaskPriority, TaskStatus, Tag, Workspace
from .store import BoardSnapshot, BoardStore
from .workspace import WorkspaceResolver

logger = logging.getLogger(__name__)


class BoardCache:
    """
    Per-workspace cache of the active board view; never authoritative.

    Each view is stored with the board_version it was read at and is only
    served while the database still reports that version, so writes from
    other processes or from racing requests are never hidden.
    """

    def __init__(self):
        self._views: Dict[str, Tuple[int, List[Task]]] = {}  # workspace_id -> (version, tasks)

    def get(self, workspace_id: str, version: int) -> Optional[List[Task]]:
        entry = self._views.get(workspace_id)
        if entry is None or entry[0] != version:
            return None
        return entry[1]

    def put(self, workspace_id: str, version: int, tasks: List[Task]) -> None:
        current = self._views.get(workspace_id)
        if current is not None and current[0] > version:
            return
        self._views[workspace_id] = (version, tasks)

    def invalidate(self, workspace_id: str, **_) -> None:
        self._views.pop(workspace_id, None)

    def clear(self) -> None:
        self._views.clear()


def assemble_tasks(snapshot: BoardSnapshot) -> List[Task]:
    """Embed tags into each task, dropping unresolvable tag ids."""
    tags_by_id = {tag.id: tag for tag in snapshot.tags}
    for task in snapshot.tasks:
        task.tags = [
            tags_by_id[tag_id]
            for tag_id in snapshot.tag_links.get(task.id, [])
            if tag_id in tags_by_id
        ]
    return snapshot.tasks


def board_columns(tasks: Iterable[Task]) -> Dict[TaskStatus, List[Task]]:
    """Group tasks by status; each column sorted high → medium → low (stable)."""
    columns: Dict[TaskStatus, List[Task]] = {status: [] for status in TaskStatus}
    for task in tasks:
        columns[task.status].append(task)
    for status in columns:
        columns[status].sort(key=lambda t: t.priority.rank)
    return columns


def filter_tasks(
    tasks: Iterable[Task],
    query: str = "",
    tag_ids: Optional[Iterable[str]] = None,
) -> List[Task]:
    """
    Board filter bar semantics.

    query matches text or description case-insensitively; tag_ids keeps tasks
    carrying at least one of the given tags.
    """
    query = (query or "").strip().lower()
    wanted = set(tag_ids or [])
    result = []
    for task in tasks:
        if wanted and not wanted.intersection(task.tag_ids):
            continue
        if query and query not in task.text.lower() and query not in task.description.lower():
            continue
        result.append(task)
    return result


def board_stats(tasks: Iterable[Task], today: Optional[date] = None) -> Dict[str, object]:
    """Counts by status and priority plus the overdue count."""
    tasks = list(tasks)
    by_status = {status.value: 0 for status in TaskStatus}
    by_priority = {priority.value: 0 for priority in TaskPriority}
    overdue = 0
    for task in tasks:
        by_status[task.status.value] += 1
        by_priority[task.priority.value] += 1
        if task.is_overdue(today):
            overdue += 1
    return {
        "total": len(tasks),
        "by_status": by_status,
        "by_priority": by_priority,
        "completed": by_status[TaskStatus.COMPLETED.value],
        "overdue": overdue,
    }


class BoardQueries:
    """Read service scoped to the caller's active workspace."""

    def __init__(
        self,
        store: BoardStore,
        resolver: WorkspaceResolver,
        auth,
        cache: Optional[BoardCache] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.auth = auth
        self.cache = cache

    def _user_id(self) -> str:
        user_id = self.auth.current_user()
        if not user_id:
            raise Unauthenticated()
        return user_id

    def active_workspace_id(self) -> str:
        return self.resolver.resolve_active_workspace(self._user_id())

    def list_active_tasks(self) -> List[Task]:
        """Non-archived tasks of the active workspace, newest first."""
        workspace_id = self.active_workspace_id()
        if self.cache is not None:
            cached = self.cache.get(workspace_id, self.store.board_version(workspace_id))
            if cached is not None:
                return list(cached)

        snapshot = self.store.load_board(workspace_id, archived=False)
        tasks = assemble_tasks(snapshot)
        if self.cache is not None:
            self.cache.put(workspace_id, snapshot.version, tasks)
        return list(tasks)

    def list_archived_tasks(self) -> List[Task]:
        """Archived tasks, most recently updated first."""
        workspace_id = self.active_workspace_id()
        return assemble_tasks(self.store.load_board(workspace_id, archived=True))

    def list_tags(self) -> List[Tag]:
        """Workspace tags ordered by name."""
        return self.store.list_tags(self.active_workspace_id())

    def list_workspaces(self, user_id: Optional[str] = None) -> List[Workspace]:
        """The user's workspaces with role, ordered by join time."""
        return self.store.list_workspaces(user_id or self._user_id())
