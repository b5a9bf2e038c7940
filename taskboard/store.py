"""
Task board storage backend (SQLite).

Holds the relational collections (workspaces, workspace_members,
workspace_invites, tasks, tags, task_tags) and the operations that must be
atomic on the storage side:

  - workspace creation together with its owner membership
  - invite redemption (join_workspace_via_invite)
  - bulk archive of completed tasks (single UPDATE)
  - tag deletion, cascading to task_tags through the foreign key

Schema changes are applied once per database through SCHEMA_MIGRATIONS,
tracked by PRAGMA user_version. Triggers bump workspaces.board_version inside
every write transaction that touches tasks, tags or task_tags, so any process
can tell whether a cached board view is still current.
"""
import json
import logging
import secrets
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional

from .errors import DuplicateTagName, InviteExpired, InviteNotFound, NotFound, StorageError
from .schema import (
    Invite,
    Membership,
    Note,
    Subtask,
    Tag,
    Task,
    TaskPriority,
    TaskStatus,
    Workspace,
    WorkspaceRole,
    parse_date,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)


SCHEMA_MIGRATIONS = [
    # 1: multi-tenant schema, every task and tag scoped to one workspace
    """
    CREATE TABLE IF NOT EXISTS workspaces (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        owner_id TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS workspace_members (
        workspace_id TEXT NOT NULL REFERENCES workspaces(id) ON DELETE CASCADE,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'member' CHECK (role IN ('owner', 'member')),
        joined_at TEXT NOT NULL,
        PRIMARY KEY (workspace_id, user_id)
    );
    CREATE TABLE IF NOT EXISTS workspace_invites (
        id TEXT PRIMARY KEY,
        workspace_id TEXT NOT NULL REFERENCES workspaces(id) ON DELETE CASCADE,
        token TEXT NOT NULL UNIQUE,
        created_by TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        workspace_id TEXT NOT NULL REFERENCES workspaces(id) ON DELETE CASCADE,
        created_by TEXT NOT NULL,
        text TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT 'not-started'
            CHECK (status IN ('not-started', 'in-progress', 'at-risk', 'completed')),
        priority TEXT NOT NULL DEFAULT 'medium'
            CHECK (priority IN ('high', 'medium', 'low')),
        due_date TEXT,
        subtasks TEXT NOT NULL DEFAULT '[]',  -- JSON list
        notes TEXT NOT NULL DEFAULT '[]',     -- JSON list
        archived INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (id, workspace_id)
    );
    CREATE TABLE IF NOT EXISTS tags (
        id TEXT PRIMARY KEY,
        workspace_id TEXT NOT NULL REFERENCES workspaces(id) ON DELETE CASCADE,
        created_by TEXT NOT NULL,
        name TEXT NOT NULL,
        color TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE (workspace_id, name),
        UNIQUE (id, workspace_id)
    );
    -- A link only exists when task and tag share a workspace
    CREATE TABLE IF NOT EXISTS task_tags (
        task_id TEXT NOT NULL,
        tag_id TEXT NOT NULL,
        workspace_id TEXT NOT NULL,
        PRIMARY KEY (task_id, tag_id),
        FOREIGN KEY (task_id, workspace_id)
            REFERENCES tasks(id, workspace_id) ON DELETE CASCADE,
        FOREIGN KEY (tag_id, workspace_id)
            REFERENCES tags(id, workspace_id) ON DELETE CASCADE
    );
    """,
    # 2: board query indexes
    """
    CREATE INDEX IF NOT EXISTS idx_tasks_board ON tasks(workspace_id, archived, created_at);
    CREATE INDEX IF NOT EXISTS idx_members_user ON workspace_members(user_id, joined_at);
    CREATE INDEX IF NOT EXISTS idx_task_tags_workspace ON task_tags(workspace_id);
    CREATE INDEX IF NOT EXISTS idx_task_tags_tag ON task_tags(tag_id);
    """,
    # 3: per-workspace board version, bumped by every write to the board tables
    """
    ALTER TABLE workspaces ADD COLUMN board_version INTEGER NOT NULL DEFAULT 0;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_task_insert AFTER INSERT ON tasks BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = NEW.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_task_update AFTER UPDATE ON tasks BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = NEW.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_task_delete AFTER DELETE ON tasks BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = OLD.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_tag_insert AFTER INSERT ON tags BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = NEW.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_tag_update AFTER UPDATE ON tags BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = NEW.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_tag_delete AFTER DELETE ON tags BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = OLD.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_link_insert AFTER INSERT ON task_tags BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = NEW.workspace_id;
    END;
    CREATE TRIGGER IF NOT EXISTS bump_board_on_link_delete AFTER DELETE ON task_tags BEGIN
        UPDATE workspaces SET board_version = board_version + 1 WHERE id = OLD.workspace_id;
    END;
    """,
]


def _connect(db_path: str, timeout: float) -> sqlite3.Connection:
    """Open an autocommit connection with FK enforcement and WAL mode."""
    conn = sqlite3.connect(db_path, timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


def _ts(value: datetime) -> str:
    """Fixed-width UTC timestamp so stored values sort lexically."""
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class BoardSnapshot:
    """Raw rows for one board read, taken inside a single read transaction."""
    tasks: List[Task] = field(default_factory=list)
    tag_links: Dict[str, List[str]] = field(default_factory=dict)
    tags: List[Tag] = field(default_factory=list)
    version: int = 0  # workspace board_version the rows belong to


class BoardStore:
    """SQLite-backed store for workspaces, tasks, tags and invites."""

    def __init__(
        self,
        db_path: str = None,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize store and apply pending migrations."""
        if db_path is None:
            db_path = str(Path.home() / ".local" / "share" / "taskboard" / "board.db")
        self.db_path = db_path
        self.timeout = timeout
        self.clock = clock
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._migrate()

    # ── Connection handling ──

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Read connection; sqlite errors surface as StorageError."""
        conn = None
        try:
            conn = _connect(self.db_path, self.timeout)
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Storage read failed: {e}")
            raise StorageError() from e
        finally:
            if conn is not None:
                conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction (BEGIN IMMEDIATE). Rolls back on any error."""
        conn = None
        try:
            conn = _connect(self.db_path, self.timeout)
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            logger.error(f"Storage write failed: {e}")
            raise StorageError() from e
        finally:
            if conn is not None:
                conn.close()

    def _migrate(self):
        """Apply SCHEMA_MIGRATIONS newer than the database's user_version."""
        with self._connection() as conn:
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            for number, script in enumerate(SCHEMA_MIGRATIONS, start=1):
                if number <= version:
                    continue
                conn.executescript(
                    f"BEGIN;\n{script}\nPRAGMA user_version = {number};\nCOMMIT;"
                )
                logger.info(f"Applied schema migration {number} to {self.db_path}")

    def schema_version(self) -> int:
        with self._connection() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    # ── Workspaces & memberships ──

    def create_workspace(self, name: str, owner_id: str) -> Workspace:
        """Insert a workspace and its owner membership as one unit."""
        now = self.clock()
        workspace = Workspace(
            id=_new_id(), name=name, owner_id=owner_id,
            role=WorkspaceRole.OWNER, created_at=now, joined_at=now,
        )
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO workspaces (id, name, owner_id, created_at) VALUES (?, ?, ?, ?)",
                (workspace.id, name, owner_id, _ts(now)),
            )
            conn.execute(
                "INSERT INTO workspace_members (workspace_id, user_id, role, joined_at) "
                "VALUES (?, ?, 'owner', ?)",
                (workspace.id, owner_id, _ts(now)),
            )
        return workspace

    def get_membership(self, workspace_id: str, user_id: str) -> Optional[Membership]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM workspace_members WHERE workspace_id = ? AND user_id = ?",
                (workspace_id, user_id),
            ).fetchone()
        return self._row_to_membership(row) if row else None

    def earliest_membership(self, user_id: str) -> Optional[Membership]:
        """The user's first-joined workspace membership, if any."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM workspace_members WHERE user_id = ? "
                "ORDER BY joined_at ASC, rowid ASC LIMIT 1",
                (user_id,),
            ).fetchone()
        return self._row_to_membership(row) if row else None

    def list_workspaces(self, user_id: str) -> List[Workspace]:
        """Workspaces the user belongs to, annotated with role, by join time."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT w.id, w.name, w.owner_id, w.created_at, m.role, m.joined_at
                FROM workspace_members m
                JOIN workspaces w ON w.id = m.workspace_id
                WHERE m.user_id = ?
                ORDER BY m.joined_at ASC, m.rowid ASC
                """,
                (user_id,),
            ).fetchall()
        return [
            Workspace(
                id=row["id"],
                name=row["name"],
                owner_id=row["owner_id"],
                role=WorkspaceRole(row["role"]),
                created_at=parse_timestamp(row["created_at"]),
                joined_at=parse_timestamp(row["joined_at"]),
            )
            for row in rows
        ]

    def list_members(self, workspace_id: str) -> List[Membership]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM workspace_members WHERE workspace_id = ? "
                "ORDER BY joined_at ASC, rowid ASC",
                (workspace_id,),
            ).fetchall()
        return [self._row_to_membership(row) for row in rows]

    # ── Invites ──

    def create_invite(self, workspace_id: str, created_by: str, expires_at: datetime) -> Invite:
        invite = Invite(
            id=_new_id(),
            token=secrets.token_urlsafe(24),
            workspace_id=workspace_id,
            created_by=created_by,
            expires_at=expires_at,
            created_at=self.clock(),
        )
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO workspace_invites "
                "(id, workspace_id, token, created_by, expires_at, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (invite.id, workspace_id, invite.token, created_by,
                 _ts(expires_at), _ts(invite.created_at)),
            )
        return invite

    def get_invite(self, token: str) -> Optional[Invite]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM workspace_invites WHERE token = ?", (token,)
            ).fetchone()
        return self._row_to_invite(row) if row else None

    def join_workspace_via_invite(self, token: str, user_id: str) -> str:
        """
        Redeem an invite token for user_id.

        Validation and membership insertion happen inside one write
        transaction. Re-joining is a no-op (INSERT OR IGNORE on the
        membership primary key).

        Returns:
            The invite's workspace id.

        Raises:
            InviteNotFound, InviteExpired
        """
        now = self.clock()
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM workspace_invites WHERE token = ?", (token,)
            ).fetchone()
            if not row:
                raise InviteNotFound()
            invite = self._row_to_invite(row)
            if not invite.is_valid(now):
                raise InviteExpired()
            conn.execute(
                "INSERT OR IGNORE INTO workspace_members "
                "(workspace_id, user_id, role, joined_at) VALUES (?, ?, 'member', ?)",
                (invite.workspace_id, user_id, _ts(now)),
            )
        return invite.workspace_id

    # ── Tasks ──

    def insert_task(self, workspace_id: str, user_id: str, text: str, description: str = "") -> Task:
        """Insert a new task with board defaults."""
        now = self.clock()
        task = Task(
            id=_new_id(), text=text, description=description,
            workspace_id=workspace_id, created_by=user_id,
            created_at=now, updated_at=now,
        )
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO tasks
                (id, workspace_id, created_by, text, description, status, priority,
                 archived, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (task.id, workspace_id, user_id, text, description,
                 task.status.value, task.priority.value, _ts(now), _ts(now)),
            )
        return task

    def replace_task_fields(
        self,
        workspace_id: str,
        task_id: str,
        description: str,
        due_date: Optional[date],
        priority: TaskPriority,
        tag_ids: List[str],
        subtasks: List[Subtask],
        notes: List[Note],
    ) -> bool:
        """
        Whole-object replace of the mutable task fields.

        Tag ids that do not belong to the workspace are dropped. Returns
        False when the task does not exist in the workspace.
        """
        now = self.clock()
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE tasks
                SET description = ?, due_date = ?, priority = ?,
                    subtasks = ?, notes = ?, updated_at = ?
                WHERE id = ? AND workspace_id = ?
                """,
                (
                    description,
                    due_date.isoformat() if due_date else None,
                    priority.value,
                    json.dumps([s.to_dict() for s in subtasks]),
                    json.dumps([n.to_dict() for n in notes]),
                    _ts(now),
                    task_id,
                    workspace_id,
                ),
            )
            if cursor.rowcount == 0:
                return False
            conn.execute("DELETE FROM task_tags WHERE task_id = ?", (task_id,))
            for tag_id in dict.fromkeys(tag_ids):
                conn.execute(
                    "INSERT INTO task_tags (task_id, tag_id, workspace_id) "
                    "SELECT ?, id, workspace_id FROM tags WHERE id = ? AND workspace_id = ?",
                    (task_id, tag_id, workspace_id),
                )
        return True

    def set_task_status(self, workspace_id: str, task_id: str, status: TaskStatus) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET status = ?, updated_at = ? WHERE id = ? AND workspace_id = ?",
                (status.value, _ts(self.clock()), task_id, workspace_id),
            )
        return cursor.rowcount > 0

    def set_archived(self, workspace_id: str, task_id: str, archived: bool) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET archived = ?, updated_at = ? WHERE id = ? AND workspace_id = ?",
                (1 if archived else 0, _ts(self.clock()), task_id, workspace_id),
            )
        return cursor.rowcount > 0

    def archive_completed(self, workspace_id: str) -> int:
        """Archive every completed, unarchived task in one statement."""
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE tasks SET archived = 1, updated_at = ?
                WHERE workspace_id = ? AND status = 'completed' AND archived = 0
                """,
                (_ts(self.clock()), workspace_id),
            )
        return cursor.rowcount

    def delete_task(self, workspace_id: str, task_id: str) -> bool:
        """Hard delete. task_tags rows go with it (FK cascade)."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND workspace_id = ?",
                (task_id, workspace_id),
            )
        return cursor.rowcount > 0

    def modify_task_list(
        self,
        workspace_id: str,
        task_id: str,
        column: str,
        modify: Callable[[list], list],
    ) -> list:
        """
        Read-modify-write of a JSON list column (subtasks or notes).

        Runs under BEGIN IMMEDIATE so concurrent writers serialize. modify
        receives the decoded list and returns the new one; raising from it
        rolls the transaction back.

        Raises:
            NotFound when the task is not in the workspace.
        """
        if column not in ("subtasks", "notes"):
            raise ValueError(f"Not a list column: {column}")
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT {column} FROM tasks WHERE id = ? AND workspace_id = ?",
                (task_id, workspace_id),
            ).fetchone()
            if not row:
                raise NotFound("Task not found")
            updated = modify(json.loads(row[column] or "[]"))
            conn.execute(
                f"UPDATE tasks SET {column} = ?, updated_at = ? WHERE id = ?",
                (json.dumps(updated), _ts(self.clock()), task_id),
            )
        return updated

    def get_task(self, workspace_id: str, task_id: str) -> Optional[Task]:
        """Single task row; tags are left empty (see load_board)."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ? AND workspace_id = ?",
                (task_id, workspace_id),
            ).fetchone()
        return self._row_to_task(row) if row else None

    def load_board(self, workspace_id: str, archived: bool = False) -> BoardSnapshot:
        """
        Tasks, tag links and tags for one workspace in a single snapshot.

        Active tasks come newest first; archived tasks most recently
        updated first.
        """
        order = "updated_at DESC" if archived else "created_at DESC"
        with self._connection() as conn:
            conn.execute("BEGIN")
            try:
                version_row = conn.execute(
                    "SELECT board_version FROM workspaces WHERE id = ?", (workspace_id,)
                ).fetchone()
                rows = conn.execute(
                    f"SELECT * FROM tasks WHERE workspace_id = ? AND archived = ? "
                    f"ORDER BY {order}, rowid DESC",
                    (workspace_id, 1 if archived else 0),
                ).fetchall()
                links = conn.execute(
                    "SELECT task_id, tag_id FROM task_tags WHERE workspace_id = ? ORDER BY rowid",
                    (workspace_id,),
                ).fetchall()
                tag_rows = conn.execute(
                    "SELECT * FROM tags WHERE workspace_id = ? ORDER BY name",
                    (workspace_id,),
                ).fetchall()
            finally:
                conn.execute("COMMIT")

        tag_links: Dict[str, List[str]] = {}
        for link in links:
            tag_links.setdefault(link["task_id"], []).append(link["tag_id"])
        return BoardSnapshot(
            tasks=[self._row_to_task(row) for row in rows],
            tag_links=tag_links,
            tags=[self._row_to_tag(row) for row in tag_rows],
            version=version_row["board_version"] if version_row else 0,
        )

    def board_version(self, workspace_id: str) -> int:
        """Current board version; changes whenever a task, tag or link changes."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT board_version FROM workspaces WHERE id = ?", (workspace_id,)
            ).fetchone()
        return row["board_version"] if row else 0

    # ── Tags ──

    def insert_tag(self, workspace_id: str, user_id: str, name: str, color: str) -> Tag:
        """Insert a tag; a name clash in the workspace raises DuplicateTagName."""
        tag = Tag(id=_new_id(), name=name, color=color, workspace_id=workspace_id)
        with self._transaction() as conn:
            try:
                conn.execute(
                    "INSERT INTO tags (id, workspace_id, created_by, name, color, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (tag.id, workspace_id, user_id, name, color, _ts(self.clock())),
                )
            except sqlite3.IntegrityError as e:
                if "UNIQUE" in str(e):
                    raise DuplicateTagName() from e
                raise
        return tag

    def delete_tag(self, workspace_id: str, tag_id: str) -> bool:
        """Delete a tag; its task_tags links are removed by the same statement."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM tags WHERE id = ? AND workspace_id = ?",
                (tag_id, workspace_id),
            )
        return cursor.rowcount > 0

    def list_tags(self, workspace_id: str) -> List[Tag]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM tags WHERE workspace_id = ? ORDER BY name",
                (workspace_id,),
            ).fetchall()
        return [self._row_to_tag(row) for row in rows]

    # ── Bulk import ──

    def import_tasks(self, workspace_id: str, user_id: str, records: List[dict], tag_colors: Dict[str, str]) -> int:
        """
        Insert already-normalized task records in one transaction.

        Each record carries a ``tag_names`` list; missing tags are created
        with the colour from tag_colors. Returns the number of tasks inserted.
        """
        now = _ts(self.clock())
        with self._transaction() as conn:
            for name, color in tag_colors.items():
                conn.execute(
                    "INSERT OR IGNORE INTO tags (id, workspace_id, created_by, name, color, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (_new_id(), workspace_id, user_id, name, color, now),
                )
            for record in records:
                task_id = _new_id()
                conn.execute(
                    """
                    INSERT INTO tasks
                    (id, workspace_id, created_by, text, description, status, priority,
                     due_date, subtasks, notes, archived, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        task_id, workspace_id, user_id,
                        record["text"], record["description"],
                        record["status"], record["priority"], record["due_date"],
                        json.dumps(record["subtasks"]), json.dumps(record["notes"]),
                        1 if record["archived"] else 0,
                        _ts(record["created_at"]) if record.get("created_at") else now,
                        now,
                    ),
                )
                for name in dict.fromkeys(record["tag_names"]):
                    conn.execute(
                        "INSERT INTO task_tags (task_id, tag_id, workspace_id) "
                        "SELECT ?, id, workspace_id FROM tags WHERE workspace_id = ? AND name = ?",
                        (task_id, workspace_id, name),
                    )
        return len(records)

    # ── Row conversion ──

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            text=row["text"],
            description=row["description"] or "",
            status=TaskStatus(row["status"]),
            priority=TaskPriority(row["priority"]),
            due_date=parse_date(row["due_date"]),
            subtasks=[Subtask.from_dict(s) for s in json.loads(row["subtasks"] or "[]")],
            notes=[Note.from_dict(n) for n in json.loads(row["notes"] or "[]")],
            archived=bool(row["archived"]),
            workspace_id=row["workspace_id"],
            created_by=row["created_by"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )

    def _row_to_tag(self, row: sqlite3.Row) -> Tag:
        return Tag(
            id=row["id"], name=row["name"], color=row["color"],
            workspace_id=row["workspace_id"],
        )

    def _row_to_membership(self, row: sqlite3.Row) -> Membership:
        return Membership(
            workspace_id=row["workspace_id"],
            user_id=row["user_id"],
            role=WorkspaceRole(row["role"]),
            joined_at=parse_timestamp(row["joined_at"]),
        )

    def _row_to_invite(self, row: sqlite3.Row) -> Invite:
        return Invite(
            id=row["id"],
            token=row["token"],
            workspace_id=row["workspace_id"],
            created_by=row["created_by"],
            expires_at=parse_timestamp(row["expires_at"]),
            created_at=parse_timestamp(row["created_at"]),
        )
