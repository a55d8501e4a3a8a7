"""
Shared pytest fixtures: rule factory, in-memory rule source/sink and an
in-memory stand-in for the Supabase query builder.
"""

import itertools
import os

import pytest

from clearance.config import ClearanceSettings
from clearance.schema import ValidationRule

# Keep tests off any real project configured in the developer's shell.
for _key in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY"):
    os.environ.pop(_key, None)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Subset of the postgrest query builder used by the clearance package."""

    def __init__(self, db, table):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload = None
        self._filters = []
        self._order = []
        self._limit = None

    def select(self, *columns):
        self._op = "select"
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._op = "update"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self._order.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self._filters)

    def execute(self):
        self._db.calls.append((self._table, self._op))
        error = self._db.failures.get((self._table, self._op))
        if error is not None:
            raise error

        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for item in payload:
                row = dict(item)
                row.setdefault("id", f"{self._table}-{next(self._db.ids)}")
                row.setdefault("created_at", f"2024-01-01T00:00:{next(self._db.ticks):02d}+00:00")
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)
        if self._op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return FakeResponse(updated)
        if self._op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self._db.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(removed)

        selected = [dict(row) for row in rows if self._matches(row)]
        for column, desc in reversed(self._order):
            selected.sort(key=lambda row: str(row.get(column) or ""), reverse=desc)
        if self._limit is not None:
            selected = selected[: self._limit]
        return FakeResponse(selected)


class FakeSupabase:
    """In-memory Supabase client: tables are lists of row dicts."""

    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.calls = []
        self.ids = itertools.count(1)
        self.ticks = itertools.count(0)

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])

    def fail(self, table, op, error=None):
        self.failures[(table, op)] = error or RuntimeError(f"{table} {op} unavailable")


class StaticRuleSource:
    """RuleSource returning a fixed list, or raising when given an exception."""

    def __init__(self, rules=None, error=None):
        self.rules = list(rules or [])
        self.error = error
        self.requested = []

    def load_rules(self, document_type):
        self.requested.append(document_type)
        if self.error is not None:
            raise self.error
        return list(self.rules)


class RecordingSink:
    """ValidationSink that keeps the latest result per document."""

    def __init__(self, error=None):
        self.stored = {}
        self.calls = 0
        self.error = error

    def replace_results(self, document_id, result):
        self.calls += 1
        if self.error is not None:
            raise self.error
        self.stored[document_id] = result.model_copy(deep=True)


@pytest.fixture
def make_rule():
    """Factory for ValidationRule with sensible defaults."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        data = {
            "id": f"rule-{n}",
            "rule_name": f"Rule {n}",
            "rule_code": f"RULE_{n}",
            "document_type": "Commercial Invoice",
            "condition_field": "invoice_number",
            "condition_type": "required",
            "condition_value": None,
            "error_message": "Invoice number is required",
            "severity": "medium",
            "is_active": True,
        }
        data.update(overrides)
        return ValidationRule(**data)

    return _make


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def settings():
    return ClearanceSettings(
        supabase_url="https://test.supabase.co/",
        supabase_anon_key="test-anon-key",
        supabase_service_role_key="test-service-role-key",
        worker_id="worker-test",
        worker_poll_interval=0.01,
    )


@pytest.fixture
def rule_source_factory():
    return StaticRuleSource


@pytest.fixture
def sink_factory():
    return RecordingSink
