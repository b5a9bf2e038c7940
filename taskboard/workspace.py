"""
Workspace resolution: which workspace does this request operate on?

Resolution order for the active workspace:
  1. sticky preference (cookie), if the user is still a member
  2. the user's earliest-joined membership (persisted as the new preference)
  3. bootstrap: create a default workspace owned by the user

Two first requests racing through step 3 can each create a workspace. That
is accepted: both are valid personal workspaces and step 2 converges on the
earliest one afterwards.
"""
import logging
from datetime import timedelta
from typing import Optional

from .config import Config
from .errors import NotAMember
from .schema import Invite, Workspace
from .store import BoardStore

logger = logging.getLogger(__name__)


class WorkspaceResolver:
    """Resolves, switches and joins workspaces for one request."""

    def __init__(self, store: BoardStore, preferences, config: Optional[Config] = None):
        self.store = store
        self.preferences = preferences
        self.config = config or Config()
        self._resolved: Optional[tuple] = None  # (user_id, workspace_id)

    @property
    def cookie_name(self) -> str:
        return self.config.workspace_cookie

    def remember(self, workspace_id: str) -> None:
        """Persist workspace_id as the sticky active workspace."""
        self.preferences.set(
            self.cookie_name,
            workspace_id,
            path="/",
            httponly=True,
            samesite="Lax",
            secure=self.config.is_production,
            max_age=self.config.cookie_max_age,
        )

    def forget(self) -> None:
        self.preferences.delete(self.cookie_name)
        self._resolved = None

    def resolve_active_workspace(self, user_id: str) -> str:
        """Return the active workspace id for user_id, bootstrapping if needed."""
        if self._resolved and self._resolved[0] == user_id:
            return self._resolved[1]

        preferred = self.preferences.get(self.cookie_name)
        if preferred and self.store.get_membership(preferred, user_id):
            workspace_id = preferred
        else:
            membership = self.store.earliest_membership(user_id)
            if membership:
                workspace_id = membership.workspace_id
            else:
                workspace = self.store.create_workspace(
                    self.config.default_workspace_name, user_id
                )
                workspace_id = workspace.id
                logger.info(f"Bootstrapped workspace {workspace_id} for user {user_id}")
            self.remember(workspace_id)

        self._resolved = (user_id, workspace_id)
        return workspace_id

    def switch_active_workspace(self, user_id: str, workspace_id: str) -> None:
        """Make workspace_id active. Raises NotAMember without a membership row."""
        self.require_membership(user_id, workspace_id)
        self.remember(workspace_id)
        self._resolved = (user_id, workspace_id)

    def require_membership(self, user_id: str, workspace_id: str) -> None:
        if not self.store.get_membership(workspace_id, user_id):
            logger.warning(f"User {user_id} is not a member of workspace {workspace_id}")
            raise NotAMember()

    def create_workspace(self, user_id: str, name: str) -> Workspace:
        """Create a workspace owned by user_id and make it active."""
        workspace = self.store.create_workspace(name, user_id)
        self.remember(workspace.id)
        self._resolved = (user_id, workspace.id)
        logger.info(f"Created workspace {workspace.id} for user {user_id}")
        return workspace

    def generate_invite(self, user_id: str, workspace_id: str) -> Invite:
        """Issue an invite for a workspace the caller belongs to."""
        self.require_membership(user_id, workspace_id)
        expires_at = self.store.clock() + timedelta(days=self.config.invite_ttl_days)
        invite = self.store.create_invite(workspace_id, user_id, expires_at)
        logger.info(f"Issued invite {invite.id} for workspace {workspace_id}")
        return invite

    def redeem_invite(self, token: str, user_id: str) -> str:
        """
        Join the invite's workspace and make it active.

        Raises:
            InviteNotFound, InviteExpired
        """
        workspace_id = self.store.join_workspace_via_invite(token, user_id)
        self.remember(workspace_id)
        self._resolved = (user_id, workspace_id)
        logger.info(f"User {user_id} joined workspace {workspace_id} via invite")
        return workspace_id
