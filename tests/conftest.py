"""
Shared fixtures.

`db` swaps `core.dbutils.get_conn` for an in-memory fake that records every
statement and answers by rule, so no PostgreSQL server is needed.
"""

from datetime import datetime, timezone

import pytest

from core import dbutils, hooks
from models import User

USER_ID = "410544b2-4001-4271-9855-fec4b6a6442a"
OTHER_USER_ID = "9c3e44f1-4f9e-4c49-9a0b-1c1f7a3b2d11"
CUSTOMER_ID = "3958dc9e-712f-4377-85e9-fec4b6a6442a"
INVOICE_ID = "cc27c14a-0acf-4f4a-a6c9-d45682c144b9"
EXPENSE_ID = "57e0b1a0-5d3f-4c67-9d5c-6f0e5ad1c2b4"


def _normalize(query: str) -> str:
    return " ".join(query.split())


class FakeCursor:
    def __init__(self, db):
        self.db = db
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.db.executed.append((_normalize(query), params))
        result = self.db.respond(query, params)
        if isinstance(result, Exception):
            raise result
        self._rows = list(result or [])

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)


class FakeConnection:
    def __init__(self, db):
        self.db = db
        self.autocommit = True
        self.closed = False

    def cursor(self, cursor_factory=None):
        return FakeCursor(self.db)

    def close(self):
        self.closed = True


class FakeDatabase:
    """Answers each statement with the first rule whose needle it contains."""

    def __init__(self):
        self.rules = []
        self.executed = []
        self.connections = []

    def on(self, needle, rows=None, error=None):
        """`rows` may be a list or a callable(query, params) -> list."""
        self.rules.append((needle, error if error is not None else rows))
        return self

    def respond(self, query, params):
        normalized = _normalize(query)
        for needle, result in self.rules:
            if needle in normalized:
                return result(normalized, params) if callable(result) else result
        return []

    def connect(self):
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn

    def statements(self, needle):
        return [(q, p) for q, p in self.executed if needle in q]


@pytest.fixture
def db(monkeypatch):
    fake = FakeDatabase()
    monkeypatch.setattr(dbutils, "get_conn", fake.connect)
    return fake


@pytest.fixture
def committed():
    """Records every (entity, id) passed to the post-write hooks."""
    calls = []

    def listener(entity, record_id):
        calls.append((entity, record_id))

    hooks.on_mutation_committed(listener)
    yield calls
    hooks.registry.remove(listener)


@pytest.fixture
def user():
    return User(
        id=USER_ID,
        name="User",
        email="user@nextmail.com",
        password="$2b$12$notarealhash",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
