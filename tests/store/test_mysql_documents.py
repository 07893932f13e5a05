from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from tenant_attendance.database.bootstrap import SCHEMA_SQL, apply_schema
from tenant_attendance.database.mysql_base import dumps_document, loads_document


def test_datetimes_survive_json_column():
    started = datetime(2026, 2, 2, 9, 30, tzinfo=timezone.utc)
    raw = dumps_document({"startTime": started, "siteName": "Shibuya", "endTime": None})

    data = loads_document(raw.encode("utf-8"))
    assert data == {"startTime": started, "siteName": "Shibuya", "endTime": None}


def test_empty_column_loads_as_empty_document():
    assert loads_document(None) == {}


class FakeCursor:
    def __init__(self, executed):
        self._executed = executed

    def execute(self, sql, params=None):
        self._executed.append(sql.strip())


class FakeConnection:
    def __init__(self, executed):
        self._executed = executed
        self.committed = False
        self.closed = False

    def cursor(self):
        return FakeCursor(self._executed)

    def commit(self):
        self.committed = True

    def close(self):
        self.closed = True


class FakeConnectionFactory:
    def __init__(self):
        self.config = SimpleNamespace(database="attendance")
        self.executed: list[str] = []
        self.connections: list[FakeConnection] = []

    def connect(self, with_database: bool = True):
        conn = FakeConnection(self.executed)
        self.connections.append(conn)
        return conn


def test_apply_schema_creates_database_then_documents_table():
    factory = FakeConnectionFactory()

    apply_schema(factory)

    assert len(factory.executed) == 2
    assert factory.executed[0].startswith("CREATE DATABASE IF NOT EXISTS `attendance`")
    assert factory.executed[1] == SCHEMA_SQL.strip()
    assert "CREATE TABLE IF NOT EXISTS documents" in factory.executed[1]
    assert all(c.committed and c.closed for c in factory.connections)
