# services/db.py (Consolidated PG helper)
import threading
import logging
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError, ThreadedConnectionPool

from config import DATABASE_URL, DB_POOL_SIZE
from services.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Owns the single shared connection pool.

    The pool is created lazily on first use. Only one connection attempt runs
    at a time: concurrent callers wait on the same lock and then share the
    memoized outcome. A failed attempt is remembered as "unavailable" until
    reset() is called, so callers never retry per request.

    Usage:
        manager = ConnectionManager(DATABASE_URL)
        if manager.is_available():
            with manager.connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT * FROM inventory_items")
    """

    def __init__(self, dsn=DATABASE_URL, pool_size=DB_POOL_SIZE):
        self.dsn = dsn
        self.pool_size = pool_size
        self._pool = None
        self._attempted = False
        self._lock = threading.Lock()
        # ThreadedConnectionPool raises instead of waiting when exhausted
        self._slots = threading.BoundedSemaphore(pool_size)

    def acquire(self):
        """Return the pool, or None when the database is unavailable."""
        if self._attempted:
            return self._pool
        with self._lock:
            if not self._attempted:  # Double-check after acquiring lock
                self._pool = self._connect()
                self._attempted = True
        return self._pool

    def is_available(self) -> bool:
        return self.acquire() is not None

    def _connect(self):
        if not self.dsn:
            logger.warning("No DATABASE_URL configured, running in fallback mode")
            return None
        try:
            logger.info("Attempting to connect to database...")
            pool = ThreadedConnectionPool(1, self.pool_size, dsn=self.dsn)
        except psycopg2.Error as e:
            logger.error(f"Database connection failed: {e}")
            return None
        try:
            self._run_probe(pool)
        except psycopg2.Error as e:
            logger.error(f"Connection test failed: {e}")
            pool.closeall()
            return None
        logger.info(f"Database connection pool initialized with max {self.pool_size} connections")
        return pool

    @staticmethod
    def _run_probe(pool):
        conn = pool.getconn()
        try:
            c = conn.cursor()
            c.execute("SELECT 1")
            c.fetchone()
            conn.rollback()
        finally:
            pool.putconn(conn)

    def probe(self) -> bool:
        """Run a liveness query now against the existing pool."""
        pool = self.acquire()
        if pool is None:
            return False
        try:
            with self._slots:
                self._run_probe(pool)
            return True
        except psycopg2.Error as e:
            logger.error(f"Database liveness probe failed: {e}")
            return False

    def database_info(self):
        """Name and server version of the connected database, or None."""
        if not self.is_available():
            return None
        try:
            with self.connection() as conn:
                c = conn.cursor()
                c.execute("SELECT current_database(), version()")
                name, version = c.fetchone()
        except StoreUnavailable:
            return None
        return {"database": name, "version": version}

    def reset(self):
        """Close the pool and forget the last attempt; the next call reconnects."""
        with self._lock:
            if self._pool is not None:
                try:
                    self._pool.closeall()
                    logger.info("Database connection pool closed")
                except psycopg2.Error as e:
                    logger.error(f"Error closing pool: {e}")
            self._pool = None
            self._attempted = False

    @contextmanager
    def connection(self):
        """
        Borrow a pooled connection. Blocks while all ``pool_size`` connections
        are out. Rolls back on error and always returns the connection to the
        pool. A lost or unobtainable connection surfaces as StoreUnavailable.
        """
        pool = self.acquire()
        if pool is None:
            raise StoreUnavailable()
        with self._slots:
            try:
                conn = pool.getconn()
            except (PoolError, psycopg2.OperationalError) as e:
                logger.error(f"Could not borrow a database connection: {e}")
                raise StoreUnavailable() from e
            lost = False
            try:
                yield conn
            except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                lost = True
                self._rollback(conn)
                logger.error(f"Database connection lost: {e}")
                raise StoreUnavailable() from e
            except Exception as e:
                self._rollback(conn)
                logger.error(f"Database error: {e}")
                raise
            finally:
                # Broken connections are discarded; the pool opens fresh ones
                pool.putconn(conn, close=lost)

    @staticmethod
    def _rollback(conn):
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.debug(f"Rollback failed: {e}")

    @contextmanager
    def transaction(self):
        """Like connection(), but commits when the block succeeds."""
        with self.connection() as conn:
            yield conn
            conn.commit()


def dict_cursor(conn):
    return conn.cursor(cursor_factory=RealDictCursor)


_default_manager = None
_default_lock = threading.Lock()


def get_manager() -> ConnectionManager:
    """Process-wide manager built from configuration."""
    global _default_manager
    if _default_manager is None:
        with _default_lock:
            if _default_manager is None:
                _default_manager = ConnectionManager()
    return _default_manager


def set_manager(manager: ConnectionManager):
    """Swap the process-wide manager (app factory and tests)."""
    global _default_manager
    with _default_lock:
        _default_manager = manager
