"""Shared fixtures for task board tests."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from taskboard.actions import BoardActions
from taskboard.auth import MemoryPreferences, StaticAuth
from taskboard.config import Config
from taskboard.events import BOARD_CHANGED, BoardEvents
from taskboard.queries import BoardCache, BoardQueries
from taskboard.store import BoardStore
from taskboard.workspace import WorkspaceResolver


class FakeClock:
    """Controllable UTC clock; does not advance on its own."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass
class Session:
    """Services bound to one user, as a request would see them."""
    user_id: str
    auth: StaticAuth
    preferences: MemoryPreferences
    resolver: WorkspaceResolver
    actions: BoardActions
    queries: BoardQueries


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def store(tmp_path, clock):
    return BoardStore(str(tmp_path / "board.db"), clock=clock)


@pytest.fixture
def events():
    return BoardEvents()


@pytest.fixture
def cache(events):
    board_cache = BoardCache()
    events.subscribe(BOARD_CHANGED, board_cache.invalidate)
    return board_cache


@pytest.fixture
def session_for(store, config, events, cache):
    """Factory: session_for("alice") -> Session sharing store, events and cache."""

    def make(user_id, preferences=None):
        preferences = preferences if preferences is not None else MemoryPreferences()
        auth = StaticAuth(user_id)
        resolver = WorkspaceResolver(store, preferences, config)
        return Session(
            user_id=user_id,
            auth=auth,
            preferences=preferences,
            resolver=resolver,
            actions=BoardActions(store, resolver, auth, events),
            queries=BoardQueries(store, resolver, auth, cache),
        )

    return make


@pytest.fixture
def alice(session_for):
    return session_for("alice")


@pytest.fixture
def bob(session_for):
    return session_for("bob")
