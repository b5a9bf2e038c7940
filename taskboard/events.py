"""
Event bridge: board mutations -> subscribers.

Every successful board mutation emits ``board_changed`` for its workspace. The read
service subscribes to drop its cached view; other listeners (audit, push
notifications) can subscribe the same way.
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

BOARD_CHANGED = "board_changed"


class BoardEvents:
    """Routes board mutation events to registered callbacks."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        self.subscribers.setdefault(event_type, []).append(callback)

    def emit(self, event_type: str, **kwargs) -> None:
        """Emit an event to all subscribers. A failing subscriber never fails the mutation."""
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}")

    def board_changed(self, workspace_id: str, action: str) -> None:
        self.emit(BOARD_CHANGED, workspace_id=workspace_id, action=action)
