"""
Board mutation service.

Every operation:
  - authenticates first (Unauthenticated short-circuits before storage)
  - validates its payload
  - resolves and scopes to the caller's active workspace
  - runs as a single storage transaction or statement
  - returns an ActionResult instead of raising
  - emits board_changed after success so cached read views are dropped
"""
import logging
import uuid
from dataclasses import dataclass
from functools import wraps
from typing import Any, Optional

from . import validation
from .errors import BoardError, NotFound, StorageError, Unauthenticated, ValidationError
from .events import BoardEvents
from .queries import assemble_tasks
from .schema import Note, Subtask, SubtaskStatus, parse_timestamp
from .store import BoardStore
from .validation import PayloadValidator
from .workspace import WorkspaceResolver

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Uniform outcome: {success: true, data} | {success: false, error}."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None  # BoardError subclass name on failure

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_type: str = "StorageError") -> "ActionResult":
        return cls(success=False, error=error, error_type=error_type)

    def to_dict(self) -> dict:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


def board_action(failure_message: str):
    """
    Decorator: run an operation and convert every failure into an ActionResult.

    Known BoardErrors surface their own message. Storage failures and
    unexpected exceptions surface failure_message only.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return ActionResult.ok(f(*args, **kwargs))
            except StorageError:
                logger.exception(f"Storage failure in {f.__name__}")
                return ActionResult.fail(failure_message)
            except BoardError as e:
                return ActionResult.fail(e.message, type(e).__name__)
            except Exception:
                logger.exception(f"Unexpected error in {f.__name__}")
                return ActionResult.fail(failure_message)
        return wrapper
    return decorator


class BoardActions:
    """Authenticated, workspace-scoped write operations."""

    def __init__(
        self,
        store: BoardStore,
        resolver: WorkspaceResolver,
        auth,
        events: Optional[BoardEvents] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.auth = auth
        self.events = events or BoardEvents()
        self.validator = PayloadValidator()

    # ── Helpers ──

    def _user_id(self) -> str:
        user_id = self.auth.current_user()
        if not user_id:
            raise Unauthenticated()
        return user_id

    def _workspace(self) -> tuple:
        """(user_id, active workspace id) for an authenticated caller."""
        user_id = self._user_id()
        return user_id, self.resolver.resolve_active_workspace(user_id)

    def _parse(self, payload: Any, schema: dict) -> dict:
        result = self.validator.check(payload, schema)
        if not result.ok:
            raise ValidationError(result.error)
        return result.data

    def _changed(self, workspace_id: str, action: str) -> None:
        self.events.board_changed(workspace_id, action)

    # ── Tasks ──

    @board_action("Failed to create task")
    def create_task(self, payload: Any) -> dict:
        user_id, workspace_id = self._workspace()
        data = self._parse(payload, validation.CREATE_TASK)
        task = self.store.insert_task(workspace_id, user_id, data["text"], data["description"])
        logger.info(f"Created task {task.id} in workspace {workspace_id}")
        self._changed(workspace_id, "create_task")
        return task.to_dict()

    @board_action("Failed to update task")
    def update_task(self, payload: Any) -> dict:
        """Replace description, due date, priority, tags, subtasks and notes."""
        _, workspace_id = self._workspace()
        data = self._parse(payload, validation.UPDATE_TASK)

        subtasks = [
            Subtask(id=s["id"], text=s["text"], status=s["status"])
            for s in data["subtasks"]
        ]
        notes = []
        for n in data["notes"]:
            try:
                created_at = parse_timestamp(n["created_at"])
            except ValueError:
                raise ValidationError("Invalid note timestamp")
            notes.append(Note(id=n["id"], text=n["text"], created_at=created_at))

        updated = self.store.replace_task_fields(
            workspace_id,
            data["id"],
            description=data["description"],
            due_date=data.get("due_date"),
            priority=data["priority"],
            tag_ids=data["tag_ids"],
            subtasks=subtasks,
            notes=notes,
        )
        if not updated:
            raise NotFound("Task not found")
        self._changed(workspace_id, "update_task")
        return {"id": data["id"]}

    @board_action("Failed to update task status")
    def update_task_status(self, payload: Any) -> dict:
        _, workspace_id = self._workspace()
        data = self._parse(payload, validation.UPDATE_TASK_STATUS)
        if not self.store.set_task_status(workspace_id, data["id"], data["status"]):
            raise NotFound("Task not found")
        self._changed(workspace_id, "update_task_status")
        return {"id": data["id"], "status": data["status"].value}

    @board_action("Failed to delete task")
    def delete_task(self, task_id: Any) -> None:
        _, workspace_id = self._workspace()
        data = self._parse({"id": task_id}, validation.TASK_ID)
        if self.store.delete_task(workspace_id, data["id"]):
            logger.info(f"Deleted task {data['id']} from workspace {workspace_id}")
        self._changed(workspace_id, "delete_task")

    @board_action("Failed to archive tasks")
    def archive_completed_tasks(self) -> dict:
        """Archive every completed task of the active workspace. Idempotent."""
        _, workspace_id = self._workspace()
        count = self.store.archive_completed(workspace_id)
        logger.info(f"Archived {count} completed tasks in workspace {workspace_id}")
        self._changed(workspace_id, "archive_completed_tasks")
        return {"archived": count}

    @board_action("Failed to restore task")
    def restore_task(self, task_id: Any) -> None:
        _, workspace_id = self._workspace()
        data = self._parse({"id": task_id}, validation.TASK_ID)
        if not self.store.set_archived(workspace_id, data["id"], False):
            raise NotFound("Task not found")
        self._changed(workspace_id, "restore_task")

    @board_action("Failed to fetch archived tasks")
    def fetch_archived_tasks(self) -> list:
        _, workspace_id = self._workspace()
        snapshot = self.store.load_board(workspace_id, archived=True)
        return [task.to_dict() for task in assemble_tasks(snapshot)]

    # ── Notes & subtasks ──

    @board_action("Failed to add note")
    def add_note(self, payload: Any) -> dict:
        _, workspace_id = self._workspace()
        data = self._parse(payload, validation.ADD_NOTE)
        note = Note(id=str(uuid.uuid4()), text=data["text"], created_at=self.store.clock())
        self.store.modify_task_list(
            workspace_id, data["task_id"], "notes",
            lambda notes: notes + [note.to_dict()],
        )
        self._changed(workspace_id, "add_note")
        return note.to_dict()

    @board_action("Failed to delete note")
    def delete_note(self, payload: Any) -> None:
        _, workspace_id = self._workspace()
        data = self._parse(payload, validation.DELETE_NOTE)

        def remove(notes):
            kept = [n for n in notes if n.get("id") != data["note_id"]]
            if len(kept) == len(notes):
                raise NotFound("Note not found")
            return kept

        self.store.modify_task_list(workspace_id, data["task_id"], "notes", remove)
        self._changed(workspace_id, "delete_note")

    @board_action("Failed to update subtask")
    def toggle_subtask(self, payload: Any) -> dict:
        """Flip a subtask between completed and pending."""
        _, workspace_id = self._workspace()
        data = self._parse(payload, validation.TOGGLE_SUBTASK)
        toggled = {}

        def toggle(subtasks):
            for item in subtasks:
                if item.get("id") == data["subtask_id"]:
                    subtask = Subtask.from_dict(item)
                    subtask.status = (
                        SubtaskStatus.PENDING if subtask.completed else SubtaskStatus.COMPLETED
                    )
                    item.update(subtask.to_dict())
                    toggled.update(item)
                    return subtasks
            raise NotFound("Subtask not found")

        self.store.modify_task_list(workspace_id, data["task_id"], "subtasks", toggle)
        self._changed(workspace_id, "toggle_subtask")
        return toggled

    # ── Tags ──

    @board_action("Failed to create tag")
    def create_tag(self, payload: Any) -> dict:
        user_id, workspace_id = self._workspace()
        data = self._parse(payload, validation.CREATE_TAG)
        tag = self.store.insert_tag(workspace_id, user_id, data["name"], data["color"])
        logger.info(f"Created tag {tag.id} in workspace {workspace_id}")
        self._changed(workspace_id, "create_tag")
        return tag.to_dict()

    @board_action("Failed to delete tag")
    def delete_tag(self, tag_id: Any) -> None:
        """Delete a tag and strip it from every task. Deleting twice is fine."""
        _, workspace_id = self._workspace()
        data = self._parse({"id": tag_id}, validation.TAG_ID)
        if self.store.delete_tag(workspace_id, data["id"]):
            logger.info(f"Deleted tag {data['id']} from workspace {workspace_id}")
        self._changed(workspace_id, "delete_tag")

    # ── Workspaces ──

    @board_action("Failed to create workspace")
    def create_workspace(self, payload: Any) -> str:
        user_id = self._user_id()
        data = self._parse(payload, validation.CREATE_WORKSPACE)
        return self.resolver.create_workspace(user_id, data["name"]).id

    @board_action("Failed to switch workspace")
    def switch_workspace(self, workspace_id: Any) -> None:
        user_id = self._user_id()
        data = self._parse({"workspace_id": workspace_id}, validation.WORKSPACE_ID)
        self.resolver.switch_active_workspace(user_id, data["workspace_id"])

    @board_action("Failed to generate invite")
    def generate_invite_link(self, payload: Any) -> dict:
        user_id = self._user_id()
        data = self._parse(payload, validation.WORKSPACE_ID)
        return self.resolver.generate_invite(user_id, data["workspace_id"]).to_dict()

    @board_action("Failed to join workspace")
    def join_workspace(self, payload: Any) -> str:
        user_id = self._user_id()
        data = self._parse(payload, validation.JOIN_WORKSPACE)
        return self.resolver.redeem_invite(data["token"], user_id)

    @board_action("Failed to sign out")
    def sign_out(self) -> None:
        self.resolver.forget()
        self.auth.sign_out()
