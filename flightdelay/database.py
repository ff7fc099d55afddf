"""
Database connection helper.

One Database object owns the process-wide psycopg2 pool. It is built by the
application entry point (see main.lifespan) and passed to every accessor,
so nothing here opens connections at import time.

The pool itself is opened on first use, not in from_settings: a database
that is down at startup shows up as PersistenceError on each request (and
retried on the next one) instead of keeping the app from starting.

Usage:
    db = Database.from_settings(settings)
    rows = db.fetch_all('SELECT * FROM "Airline" WHERE "airlineCode" = %s', ["AA"])
    with db.transaction() as conn:
        with conn.cursor() as cur:
            cur.execute(...)
    db.close()

Every psycopg2 failure leaves this module as a PersistenceError with the
driver error chained, and every borrowed connection goes back to the pool.
"""
import logging
import threading
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from flightdelay.config import Settings
from flightdelay.errors import PersistenceError

logger = logging.getLogger("flight-api.db")


class Database:
    def __init__(self, pool=None, pool_factory=None):
        self._pool = pool
        self._pool_factory = pool_factory
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Database whose pool is opened from settings on first use."""
        def open_pool():
            pool = ThreadedConnectionPool(
                settings.db_pool_min,
                settings.db_pool_max,
                **settings.connection_kwargs(),
            )
            logger.info(
                "Connection pool ready (%s:%s/%s, max %d)",
                settings.db_host, settings.db_port, settings.db_name, settings.db_pool_max,
            )
            return pool

        return cls(pool_factory=open_pool)

    def close(self):
        if self._pool is None:
            return
        self._pool.closeall()
        self._pool = None
        logger.info("Connection pool closed")

    def _get_pool(self):
        if self._pool is None:
            with self._lock:
                if self._pool is None:
                    try:
                        self._pool = self._pool_factory()
                    except psycopg2.Error as e:
                        logger.error("Could not open connection pool: %s", e)
                        raise PersistenceError(str(e)) from e
        return self._pool

    # ─────────────────────────────────────────────────────────────
    # Connection scopes
    # ─────────────────────────────────────────────────────────────

    @contextmanager
    def connection(self):
        """Borrow a pooled connection; always hand it back."""
        pool = self._get_pool()
        try:
            conn = pool.getconn()
        except psycopg2.Error as e:
            logger.error("Could not get a database connection: %s", e)
            raise PersistenceError(str(e)) from e
        try:
            yield conn
        finally:
            # A broken connection is discarded instead of recycled
            pool.putconn(conn, close=bool(conn.closed))

    @contextmanager
    def transaction(self):
        """
        Context manager for one database transaction.
        Commits on success, rolls back on error, always releases the connection.
        """
        with self.connection() as conn:
            try:
                yield conn
                conn.commit()
            except psycopg2.Error as e:
                _rollback(conn)
                logger.error("Transaction error: %s", e)
                raise PersistenceError(str(e)) from e
            except Exception:
                _rollback(conn)
                raise

    # ─────────────────────────────────────────────────────────────
    # One-shot helpers
    # ─────────────────────────────────────────────────────────────

    def fetch_all(self, query: str, params=None) -> list[dict]:
        """Run a query and return every row as a plain dict keyed by column name."""
        with self.transaction() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                return rows_of(cur)

    def fetch_one(self, query: str, params=None) -> dict | None:
        """Run a query and return the first row, or None when there is none."""
        with self.transaction() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
                return dict(row) if row is not None else None

    def execute(self, statement: str, params=None) -> int:
        """Run a data-modifying statement, return the affected row count."""
        with self.transaction() as conn:
            with conn.cursor() as cur:
                cur.execute(statement, params)
                return cur.rowcount

    def ping(self) -> bool:
        row = self.fetch_one("SELECT 1 AS connection_test")
        return bool(row and row["connection_test"] == 1)


def rows_of(cur) -> list[dict]:
    """Drain a cursor into plain dicts. Statements without a result set give []."""
    if cur.description is None:
        return []
    return [dict(row) for row in cur.fetchall()]


def _rollback(conn):
    if conn.closed:
        return
    try:
        conn.rollback()
    except psycopg2.Error as e:
        logger.warning("Rollback failed: %s", e)
