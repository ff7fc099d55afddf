"""
Shared fixtures.

Nothing here talks to PostgreSQL: `db` is a MagicMock shaped like
flightdelay.database.Database whose transaction() scope hands
out one fake connection, and `cursor` is the cursor that connection yields.
`client` is a TestClient over the real app with get_db overridden to `db`
(the lifespan, and with it the real pool, never runs).
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.main import app


@pytest.fixture
def cursor():
    cur = MagicMock()
    cur.description = None
    cur.rowcount = 0
    cur.fetchall.return_value = []
    return cur


@pytest.fixture
def connection(cursor):
    conn = MagicMock()
    conn.closed = 0
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


@pytest.fixture
def db(connection):
    fake = MagicMock(spec=Database)
    fake.transaction.return_value.__enter__.return_value = connection
    fake.fetch_all.return_value = []
    fake.fetch_one.return_value = None
    fake.execute.return_value = 0
    return fake


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
