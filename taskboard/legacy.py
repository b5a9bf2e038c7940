"""
One-time import of task exports from the pre-workspace board versions.

Two legacy shapes are accepted:

  local storage   [{"id": 1718000000000, "text": "...", "completed": false}]
  shared store    {"tasks": [{..., "status", "priority", "dueDate",
                              "tags": [...], "subtasks": [{"completed": true}],
                              "notes": [...], "archived"}],
                   "tags": [{"id", "name", "color"}]}

Boolean completion flags are converted to status enums here, once, so nothing
downstream ever has to reconcile two representations.
"""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .schema import (
    NOTE_TEXT_MAX,
    SUBTASK_TEXT_MAX,
    TAG_NAME_MAX,
    TASK_DESCRIPTION_MAX,
    TASK_TEXT_MAX,
    SubtaskStatus,
    TaskPriority,
    TaskStatus,
    parse_date,
    parse_timestamp,
)
from .store import BoardStore

logger = logging.getLogger(__name__)

DEFAULT_TAG_COLOR = "#64748b"
_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


def _timestamp(value: Any) -> Optional[datetime]:
    """ISO string or epoch milliseconds (the local-storage ids) -> UTC datetime."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        parsed = parse_timestamp(value)
    except (ValueError, OverflowError, OSError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _item_id(value: Any) -> str:
    value = str(value) if value is not None else ""
    return value if _ID_PATTERN.match(value) else str(uuid.uuid4())


def _status(raw: dict) -> TaskStatus:
    if raw.get("status") in {s.value for s in TaskStatus}:
        return TaskStatus(raw["status"])
    return TaskStatus.COMPLETED if raw.get("completed") else TaskStatus.NOT_STARTED


def _subtask_status(raw: dict) -> SubtaskStatus:
    if raw.get("status") in {s.value for s in SubtaskStatus}:
        return SubtaskStatus(raw["status"])
    return SubtaskStatus.COMPLETED if raw.get("completed") else SubtaskStatus.PENDING


def _tag_name(ref: Any, tags_by_id: Dict[str, dict]) -> Optional[str]:
    if isinstance(ref, dict):
        name = ref.get("name")
    elif str(ref) in tags_by_id:
        name = tags_by_id[str(ref)].get("name")
    else:
        name = ref
    name = str(name).strip()[:TAG_NAME_MAX] if name is not None else ""
    return name or None


def normalize_legacy_task(raw: dict, tags_by_id: Optional[Dict[str, dict]] = None) -> Optional[dict]:
    """
    Convert one legacy task into an import record.

    Returns None for entries without a usable title.
    """
    tags_by_id = tags_by_id or {}
    text = str(raw.get("text") or raw.get("title") or "").strip()[:TASK_TEXT_MAX]
    if not text:
        return None

    try:
        due_date = parse_date(raw.get("dueDate") or raw.get("due_date"))
    except ValueError:
        due_date = None

    subtasks = []
    for item in raw.get("subtasks") or []:
        if not isinstance(item, dict):
            continue
        sub_text = str(item.get("text") or "").strip()[:SUBTASK_TEXT_MAX]
        if sub_text:
            subtasks.append({
                "id": _item_id(item.get("id")),
                "text": sub_text,
                "status": _subtask_status(item).value,
            })

    notes = []
    for item in raw.get("notes") or []:
        if isinstance(item, str):
            item = {"text": item}
        note_text = str(item.get("text") or "").strip()[:NOTE_TEXT_MAX]
        if not note_text:
            continue
        created = _timestamp(
            item.get("createdAt") or item.get("created_at") or item.get("timestamp")
        ) or datetime.now(timezone.utc)
        notes.append({
            "id": _item_id(item.get("id")),
            "text": note_text,
            "created_at": created.isoformat(),
        })

    created_at = _timestamp(raw.get("createdAt") or raw.get("created_at"))
    if created_at is None and isinstance(raw.get("id"), (int, float)):
        # Local-storage ids were Date.now() values
        created_at = _timestamp(raw["id"])

    tag_names = [
        name for name in (_tag_name(ref, tags_by_id) for ref in raw.get("tags") or [])
        if name
    ]

    return {
        "text": text,
        "description": str(raw.get("description") or "")[:TASK_DESCRIPTION_MAX],
        "status": _status(raw).value,
        "priority": TaskPriority.from_str(str(raw.get("priority") or "medium")).value,
        "due_date": due_date.isoformat() if due_date else None,
        "subtasks": subtasks,
        "notes": notes,
        "archived": bool(raw.get("archived", False)),
        "created_at": created_at,
        "tag_names": tag_names,
    }


def normalize_export(payload: Any) -> Tuple[List[dict], Dict[str, str]]:
    """Normalize a whole export into (task records, tag name -> colour)."""
    if isinstance(payload, list):
        raw_tasks, raw_tags = payload, []
    elif isinstance(payload, dict):
        raw_tasks = payload.get("tasks") or []
        raw_tags = payload.get("tags") or []
    else:
        raise ValueError("Legacy export must be a list of tasks or an object with 'tasks'")

    tags_by_id = {
        str(t["id"]): t for t in raw_tags if isinstance(t, dict) and t.get("id") is not None
    }
    tag_colors: Dict[str, str] = {}
    for tag in raw_tags:
        if not isinstance(tag, dict):
            continue
        name = _tag_name(tag, tags_by_id)
        color = str(tag.get("color") or "")
        if name:
            tag_colors[name] = color if _COLOR_PATTERN.match(color) else DEFAULT_TAG_COLOR

    records = []
    skipped = 0
    for raw in raw_tasks:
        record = normalize_legacy_task(raw, tags_by_id) if isinstance(raw, dict) else None
        if record is None:
            skipped += 1
            continue
        for name in record["tag_names"]:
            tag_colors.setdefault(name, DEFAULT_TAG_COLOR)
        records.append(record)

    if skipped:
        logger.warning(f"Skipped {skipped} legacy entries without a title")
    return records, tag_colors


def import_legacy(store: BoardStore, workspace_id: str, user_id: str, payload: Any) -> int:
    """Import a legacy export into a workspace. Returns tasks imported."""
    records, tag_colors = normalize_export(payload)
    count = store.import_tasks(workspace_id, user_id, records, tag_colors)
    logger.info(f"Imported {count} legacy tasks into workspace {workspace_id}")
    return count
