"""
Shared test configuration and helpers.

Every test gets its own file-backed SQLite store under tmp_path, so tests are
isolated and threads in concurrency tests share one real database file.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from mingle.db.database import Database
from mingle.services.content_service import ContentEngine
from mingle.services.conversation_service import ConversationEngine
from mingle.services.identity_service import IdentityStore
from mingle.services.social_graph import SocialGraphEngine


class TickingClock:
    """Deterministic clock: every call advances by one millisecond."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self._current = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            self._current += timedelta(milliseconds=1)
            return self._current


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def db(tmp_path, clock):
    database = Database(f"sqlite:///{tmp_path / 'mingle.db'}", clock=clock)
    database.create_schema()
    yield database
    database.dispose()


@pytest.fixture
def identity(db):
    return IdentityStore(db)


@pytest.fixture
def social_graph(identity):
    return SocialGraphEngine(identity)


@pytest.fixture
def content(identity):
    return ContentEngine(identity)


@pytest.fixture
def conversations(identity):
    return ConversationEngine(identity)


@pytest.fixture
def make_user(identity):
    """Factory: make_user("alice") registers alice with alice@example.com."""

    def _make(username: str, email: str = None, **kwargs):
        return identity.create_user(
            username=username,
            email=email or f"{username.lower()}@example.com",
            password_hash="not-a-real-hash",
            **kwargs,
        )

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol")


def run_concurrently(fn, count: int):
    """
    Run fn(index) in `count` threads released together.

    Returns (results, errors) with one slot per thread.
    """
    barrier = threading.Barrier(count)
    results = [None] * count
    errors = [None] * count

    def _worker(index):
        barrier.wait()
        try:
            results[index] = fn(index)
        except Exception as e:
            errors[index] = e

    threads = [threading.Thread(target=_worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results, errors


@pytest.fixture
def concurrently():
    return run_concurrently
