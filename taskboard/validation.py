"""
Payload validation for every board operation.

Schemas are plain dicts of field name -> rule. Supported rule keys:
    type        - string | uuid | id | date | enum | list | object
    required    - reject when missing, None, or empty after trimming
    default     - value used when the field is missing
    nullable    - missing / None / "" becomes None
    trim        - strip surrounding whitespace (strings)
    min_length  - minimum length (strings, after trimming)
    max_length  - maximum length (strings) or item count (lists)
    pattern     - regex the whole value must match (strings)
    enum        - Enum class whose values are allowed (type=enum)
    items       - rule applied to each list element (type=list)
    fields      - nested schema (type=object)
    message     - user-facing message for required/min_length/pattern failures

PayloadValidator.validate() raises ValidationError; check() wraps it into a
ValidationResult so callers at the action boundary never see an exception.
"""
import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

from .errors import ValidationError
from .schema import (
    TaskStatus,
    TaskPriority,
    SubtaskStatus,
    TASK_TEXT_MAX,
    TASK_DESCRIPTION_MAX,
    SUBTASK_TEXT_MAX,
    NOTE_TEXT_MAX,
    TAG_NAME_MAX,
    WORKSPACE_NAME_MAX,
    TAG_COLOR_PATTERN,
)

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class ValidationResult:
    """Outcome of a pure payload check."""
    ok: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


class PayloadValidator:
    """Validates and coerces request payloads against a schema."""

    def validate(self, params: Any, schema: dict, strict: bool = False) -> dict:
        """
        Validate and coerce params against schema.

        Returns:
            dict of validated, coerced values (enums as Enum members, dates as
            datetime.date).

        Raises:
            ValidationError carrying the first failing field's message.
        """
        if not isinstance(params, dict):
            raise ValidationError("Invalid payload")

        result = {}
        for name, rule in schema.items():
            present = name in params
            value = params.get(name)
            checked = self._check_field(name, value, rule, present)
            if checked is not _SKIP:
                result[name] = checked

        if strict:
            unknown = set(params.keys()) - set(schema.keys())
            if unknown:
                raise ValidationError(
                    f"Unknown fields: {', '.join(sorted(unknown))}"
                )
        return result

    def check(self, params: Any, schema: dict, strict: bool = False) -> ValidationResult:
        """Non-raising variant of validate()."""
        try:
            return ValidationResult(ok=True, data=self.validate(params, schema, strict))
        except ValidationError as e:
            return ValidationResult(ok=False, error=e.message)

    # ── Field checks ──

    def _check_field(self, name: str, value: Any, rule: dict, present: bool = True) -> Any:
        kind = rule.get("type", "string")

        if isinstance(value, str) and rule.get("trim", kind == "string"):
            value = value.strip()

        if value is None or (value == "" and kind != "string"):
            if rule.get("required"):
                raise ValidationError(
                    rule.get("message") or f"Missing required field: {name}"
                )
            if "default" in rule:
                return rule["default"]
            if rule.get("nullable"):
                return None
            return _SKIP if not present else None

        if kind == "string":
            return self._check_string(name, value, rule)
        if kind == "uuid":
            return self._check_uuid(name, value, rule)
        if kind == "id":
            if not isinstance(value, str) or not _ID_PATTERN.match(value):
                raise ValidationError(rule.get("message") or f"Invalid {name}")
            return value
        if kind == "date":
            return self._check_date(name, value, rule)
        if kind == "enum":
            enum_cls = rule["enum"]
            try:
                return enum_cls(value)
            except ValueError:
                allowed = ", ".join(m.value for m in enum_cls)
                raise ValidationError(
                    f"Invalid value for {name}: '{value}'. Allowed: {allowed}"
                )
        if kind == "list":
            return self._check_list(name, value, rule)
        if kind == "object":
            if not isinstance(value, dict):
                raise ValidationError(f"{name} must be an object")
            nested = {}
            for sub_name, sub_rule in rule.get("fields", {}).items():
                checked = self._check_field(
                    f"{name}.{sub_name}", value.get(sub_name), sub_rule,
                    sub_name in value,
                )
                if checked is not _SKIP:
                    nested[sub_name] = checked
            return nested

        raise ValidationError(f"Unknown field type in schema: {kind}")

    def _check_string(self, name: str, value: Any, rule: dict) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")

        min_len = rule.get("min_length")
        if min_len is not None and len(value) < min_len:
            raise ValidationError(
                rule.get("message") or f"{name} must be at least {min_len} characters"
            )

        max_len = rule.get("max_length")
        if max_len is not None and len(value) > max_len:
            raise ValidationError(f"{name} must be at most {max_len} characters")

        pattern = rule.get("pattern")
        if pattern and not re.fullmatch(pattern, value):
            raise ValidationError(
                rule.get("message") or f"Invalid format for {name}"
            )
        return value

    def _check_uuid(self, name: str, value: Any, rule: dict) -> str:
        message = rule.get("message") or f"Invalid {name}"
        if not isinstance(value, str):
            raise ValidationError(message)
        try:
            parsed = uuid.UUID(value)
        except ValueError:
            raise ValidationError(message)
        if str(parsed) != value.lower():
            raise ValidationError(message)
        return str(parsed)

    def _check_date(self, name: str, value: Any, rule: dict) -> date:
        message = rule.get("message") or f"Invalid date for {name}"
        if not isinstance(value, str) or not _DATE_PATTERN.match(value):
            raise ValidationError(message)
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValidationError(message)

    def _check_list(self, name: str, value: Any, rule: dict) -> list:
        if not isinstance(value, list):
            raise ValidationError(f"{name} must be a list")

        max_len = rule.get("max_length")
        if max_len is not None and len(value) > max_len:
            raise ValidationError(f"{name} must have at most {max_len} items")

        item_rule = rule.get("items")
        if not item_rule:
            return list(value)
        return [
            self._check_field(f"{name}[{i}]", item, {**item_rule, "required": True})
            for i, item in enumerate(value)
        ]


_SKIP = object()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Operation schemas
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


CREATE_TASK = {
    "text": {
        "type": "string", "required": True, "min_length": 1,
        "max_length": TASK_TEXT_MAX, "message": "Task title is required",
    },
    "description": {"type": "string", "max_length": TASK_DESCRIPTION_MAX, "default": ""},
}

SUBTASK = {
    "type": "object",
    "fields": {
        "id": {"type": "id", "required": True, "message": "Invalid subtask ID"},
        "text": {
            "type": "string", "required": True, "min_length": 1,
            "max_length": SUBTASK_TEXT_MAX, "message": "Subtask text is required",
        },
        "status": {"type": "enum", "enum": SubtaskStatus, "default": SubtaskStatus.PENDING},
    },
}

NOTE = {
    "type": "object",
    "fields": {
        "id": {"type": "id", "required": True, "message": "Invalid note ID"},
        "text": {
            "type": "string", "required": True, "min_length": 1,
            "max_length": NOTE_TEXT_MAX, "message": "Note cannot be empty",
        },
        "created_at": {
            "type": "string", "required": True, "min_length": 1,
            "message": "Note timestamp is required",
        },
    },
}

UPDATE_TASK = {
    "id": {"type": "uuid", "required": True, "message": "Invalid task ID"},
    "description": {"type": "string", "max_length": TASK_DESCRIPTION_MAX, "default": ""},
    "due_date": {"type": "date", "nullable": True},
    "priority": {"type": "enum", "enum": TaskPriority, "required": True},
    "tag_ids": {
        "type": "list", "default": [],
        "items": {"type": "uuid", "message": "Invalid tag ID"},
    },
    "subtasks": {"type": "list", "default": [], "items": SUBTASK},
    "notes": {"type": "list", "default": [], "items": NOTE},
}

UPDATE_TASK_STATUS = {
    "id": {"type": "uuid", "required": True, "message": "Invalid task ID"},
    "status": {"type": "enum", "enum": TaskStatus, "required": True},
}

TASK_ID = {"id": {"type": "uuid", "required": True, "message": "Invalid task ID"}}

TAG_ID = {"id": {"type": "uuid", "required": True, "message": "Invalid tag ID"}}

CREATE_TAG = {
    "name": {
        "type": "string", "required": True, "min_length": 1,
        "max_length": TAG_NAME_MAX, "message": "Tag name is required",
    },
    "color": {
        "type": "string", "required": True, "pattern": TAG_COLOR_PATTERN,
        "message": "Must be a valid hex color",
    },
}

ADD_NOTE = {
    "task_id": {"type": "uuid", "required": True, "message": "Invalid task ID"},
    "text": {
        "type": "string", "required": True, "min_length": 1,
        "max_length": NOTE_TEXT_MAX, "message": "Note cannot be empty",
    },
}

DELETE_NOTE = {
    "task_id": {"type": "uuid", "required": True, "message": "Invalid task ID"},
    "note_id": {"type": "id", "required": True, "message": "Invalid note ID"},
}

TOGGLE_SUBTASK = {
    "task_id": {"type": "uuid", "required": True, "message": "Invalid task ID"},
    "subtask_id": {"type": "id", "required": True, "message": "Invalid subtask ID"},
}

CREATE_WORKSPACE = {
    "name": {
        "type": "string", "required": True, "min_length": 1,
        "max_length": WORKSPACE_NAME_MAX, "message": "Workspace name is required",
    },
}

WORKSPACE_ID = {
    "workspace_id": {"type": "uuid", "required": True, "message": "Invalid workspace ID"},
}

JOIN_WORKSPACE = {
    "token": {
        "type": "string", "required": True, "min_length": 1, "max_length": 200,
        "message": "Invite token is required",
    },
}
