"""
Shared fixtures: an in-memory stand-in for the Supabase query builder.
"""

import uuid

import pytest
from postgrest.exceptions import APIError

from detector import sessions
from detector.sessions import DetectorRegistry


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.rows = db.tables.setdefault(table, [])
        self.operation = "select"
        self.payload = None
        self.filters = []
        self.negate_next = False
        self.order_by = None
        self.row_limit = None

    # operations
    def select(self, columns="*"):
        self.operation = "select"
        return self

    def insert(self, row):
        self.operation = "insert"
        self.payload = row
        return self

    def update(self, values):
        self.operation = "update"
        self.payload = values
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # filters
    def _add(self, predicate):
        if self.negate_next:
            self.negate_next = False
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    @property
    def not_(self):
        self.negate_next = True
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row: row.get(column) in values)

    def is_(self, column, value):
        expected = None if value == "null" else value
        return self._add(lambda row: row.get(column) is expected)

    def ilike(self, column, pattern):
        needle = pattern.strip("%").lower()
        return self._add(lambda row: needle in (row.get(column) or "").lower())

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def execute(self):
        self.db.calls.append((self.table_name, self.operation))
        if self.table_name in self.db.failing_tables:
            raise APIError({"message": f"{self.table_name} unavailable", "code": "500"})

        if self.operation == "insert":
            row = dict(self.payload)
            row.setdefault("id", uuid.uuid4().hex)
            self.rows.append(row)
            return FakeResult([dict(row)])

        matched = [row for row in self.rows if all(f(row) for f in self.filters)]

        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResult([dict(row) for row in matched])

        if self.operation == "delete":
            for row in matched:
                self.rows.remove(row)
            return FakeResult([dict(row) for row in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: row.get(column) or "", reverse=desc)
        if self.row_limit is not None:
            matched = matched[: self.row_limit]
        return FakeResult([dict(row) for row in matched])


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failing_tables = set()
        self.calls = []

    def table(self, name):
        return FakeQuery(self, name)

    def seed(self, table, *rows):
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def patched_storage(monkeypatch, fake_db):
    """Route every storage module to the in-memory database."""
    import storage.complexes
    import storage.detected_data
    import storage.linked

    for module in (storage.complexes, storage.detected_data, storage.linked):
        monkeypatch.setattr(module, "get_supabase", lambda: fake_db)
    return fake_db


@pytest.fixture
def registry(monkeypatch):
    fresh = DetectorRegistry(default_mode="pattern")
    monkeypatch.setattr(sessions, "_registry", fresh)
    return fresh
