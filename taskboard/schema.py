"""
Task board domain model.

Board columns follow task status:
  Not started → In progress → At risk → Completed

Completion is always carried by a status enum. The ``completed`` booleans on
Task and Subtask are read-only projections of that status and are never
stored.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp, defaulting to now when missing."""
    if isinstance(value, datetime):
        return value
    if not value:
        return utc_now()
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def parse_date(value: Any) -> Optional[date]:
    """Parse a YYYY-MM-DD calendar date (no time component)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class TaskStatus(Enum):
    """Board columns, in display order."""
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    AT_RISK = "at-risk"
    COMPLETED = "completed"

    @classmethod
    def from_str(cls, value: str) -> "TaskStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.NOT_STARTED


class TaskPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key inside a column: high < medium < low."""
        return _PRIORITY_RANK[self]

    @classmethod
    def from_str(cls, value: str) -> "TaskPriority":
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


_PRIORITY_RANK = {
    TaskPriority.HIGH: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 2,
}


class SubtaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def from_str(cls, value: str) -> "SubtaskStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING


class WorkspaceRole(Enum):
    OWNER = "owner"
    MEMBER = "member"


# Field limits shared by validation and storage
TASK_TEXT_MAX = 500
TASK_DESCRIPTION_MAX = 2000
SUBTASK_TEXT_MAX = 500
NOTE_TEXT_MAX = 5000
TAG_NAME_MAX = 50
WORKSPACE_NAME_MAX = 100
TAG_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


@dataclass
class Subtask:
    id: str
    text: str
    status: SubtaskStatus = SubtaskStatus.PENDING

    @property
    def completed(self) -> bool:
        return self.status == SubtaskStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "status": self.status.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subtask":
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            status=SubtaskStatus(data.get("status", "pending")),
        )


@dataclass
class Note:
    """Append-only note. Notes are deleted, never edited in place."""
    id: str
    text: str
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        return cls(
            id=str(data["id"]),
            text=data.get("text", ""),
            created_at=parse_timestamp(data.get("created_at")),
        )


@dataclass
class Tag:
    id: str
    name: str
    color: str
    workspace_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass
class Task:
    """One unit of work on the board (read model, tags embedded)."""

    id: str
    text: str
    description: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    tags: List[Tag] = field(default_factory=list)
    subtasks: List[Subtask] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)
    archived: bool = False

    workspace_id: str = ""
    created_by: str = ""
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def tag_ids(self) -> List[str]:
        return [t.id for t in self.tags]

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Due strictly before today and not completed."""
        if self.due_date is None or self.completed:
            return False
        today = today or date.today()
        return self.due_date < today

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "tags": [t.to_dict() for t in self.tags],
            "subtasks": [s.to_dict() for s in self.subtasks],
            "notes": [n.to_dict() for n in self.notes],
            "archived": self.archived,
            "overdue": self.is_overdue(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class Workspace:
    """Tenant boundary, annotated with the caller's role when listed."""
    id: str
    name: str
    owner_id: str
    role: Optional[WorkspaceRole] = None
    created_at: datetime = field(default_factory=utc_now)
    joined_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "role": self.role.value if self.role else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Membership:
    workspace_id: str
    user_id: str
    role: WorkspaceRole
    joined_at: datetime = field(default_factory=utc_now)


@dataclass
class Invite:
    """Time-boxed join token for a single workspace."""
    id: str
    token: str
    workspace_id: str
    created_by: str
    expires_at: datetime
    created_at: datetime = field(default_factory=utc_now)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) < self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "token": self.token,
            "workspace_id": self.workspace_id,
            "expires_at": self.expires_at.isoformat(),
            "created_at": self.created_at.isoformat(),
        }
