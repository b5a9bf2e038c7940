"""
Error taxonomy for board operations.

Every error carries a message that is safe to show to the user. Actions
convert these into failed ActionResults at their boundary; nothing here is
meant to escape to the HTTP layer as an exception.
"""


class BoardError(Exception):
    """Base class for expected, user-visible failures."""

    default_message = "Operation failed"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BoardError):
    """Malformed or out-of-range input."""
    default_message = "Invalid input"


class Unauthenticated(BoardError):
    """No valid session. Never reveals whether a resource exists."""
    default_message = "Not authenticated"


class NotAMember(BoardError):
    """The caller has no membership row for the workspace."""
    default_message = "Not a member of this workspace"


class InviteNotFound(BoardError):
    default_message = "Invite not found"


class InviteExpired(BoardError):
    default_message = "Invite has expired"


class DuplicateTagName(BoardError):
    """Unique (workspace_id, name) violation on tag creation."""
    default_message = "A tag with that name already exists"


class NotFound(BoardError):
    default_message = "Not found"


class StorageError(BoardError):
    """Any other storage failure. The underlying error text is never surfaced."""
    default_message = "Operation failed"
