import itertools
import json
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from queue_monitor.database.snapshot_store import SnapshotStore
from queue_monitor.monitor.models import Operation, QueueObservation


class FakeCursor:
    """INSERT는 메모리에 저장, SELECT는 queue_id/location으로 최신 행 반환"""

    def __init__(self, db):
        self.db = db
        self._results = []

    def execute(self, query, params=None):
        self.db.executed.append((query, params))
        statement = query.strip().upper()
        if statement.startswith("INSERT"):
            table = query.split("INTO", 1)[1].split()[0]
            row = dict(params)
            # JSONB 컬럼은 읽을 때 파이썬 객체로 돌아옴
            row["operations"] = json.loads(row["operations"])
            row["id"] = next(self.db.ids)
            row["created_at"] = self.db.now
            self.db.tables.setdefault(table, []).append(row)
            self._results = []
        elif statement.startswith("SELECT 1"):
            self._results = [{"ok": 1}]
        elif statement.startswith("SELECT"):
            table = query.split("FROM", 1)[1].split()[0]
            queue_id, location = params
            rows = [
                r for r in self.db.tables.get(table, [])
                if r["queue_id"] == queue_id and r["location"] == location
            ]
            rows.sort(key=lambda r: (r["created_at"], r["id"]), reverse=True)
            self._results = rows[:1]
        else:
            self._results = []

    def fetchall(self):
        return [dict(r) for r in self._results]

    def close(self):
        pass


class FakeConnection:
    def __init__(self, db):
        self.db = db
        self.commits = 0
        self.rollbacks = 0

    def cursor(self, cursor_factory=None):
        return FakeCursor(self.db)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FakeDatabase:
    def __init__(self):
        self.tables = {}
        self.executed = []
        self.ids = itertools.count(1)
        self.now = datetime(2025, 3, 3, 10, 0, 0)
        self.connection = FakeConnection(self)

    def advance(self, seconds=10):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def store(fake_db):
    pool = MagicMock()
    pool.getconn.return_value = fake_db.connection
    with patch("queue_monitor.database.snapshot_store.ThreadedConnectionPool", return_value=pool):
        snapshot_store = SnapshotStore(
            host="localhost", port=5432, user="postgres", password="secret", database="duw_queue"
        )
        snapshot_store.open()
    yield snapshot_store
    snapshot_store.close()


@pytest.fixture
def make_observation():
    def _make(tickets_left=0, name="odbiór karty", location="Wroclaw", category_id=1, **overrides):
        fields = dict(
            category_id=category_id,
            category_name=name,
            location=location,
            ticket_count=12,
            tickets_served=7,
            workplaces=3,
            registered_tickets=20,
            tickets_left=tickets_left,
            average_wait_time=15,
            average_service_time=None,
            max_tickets=40,
            ticket_value="A012",
            active=True,
            enabled=True,
            operations=[Operation(id="op-1", name="Wydanie karty", enabled=True)],
        )
        fields.update(overrides)
        return QueueObservation(**fields)
    return _make
