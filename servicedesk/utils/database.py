"""
PostgreSQL access for the repository layer

A lazily opened psycopg2 connection pool with transaction-scoped helpers.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional, Tuple

from psycopg2.extras import RealDictCursor
from psycopg2.pool import SimpleConnectionPool

from servicedesk.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class Database:
    """Pooled PostgreSQL access shared by the repositories"""

    def __init__(self, settings: Optional[Settings] = None):
        """Prepare the manager; the pool is created on first use"""
        self.settings = settings or get_settings()
        self.pool: Optional[SimpleConnectionPool] = None

    def _initialize_pool(self):
        """Open the pool sized by DB_POOL_MIN / DB_POOL_MAX"""
        try:
            self.pool = SimpleConnectionPool(
                minconn=self.settings.DB_POOL_MIN,
                maxconn=self.settings.DB_POOL_MAX,
                dsn=self.settings.dsn,
            )
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    @contextmanager
    def get_connection(self):
        """
        Borrow a pooled connection for one unit of work

        Commits when the block exits cleanly and rolls back on any error;
        the connection always goes back to the pool.
        """
        if self.pool is None:
            self._initialize_pool()
        conn = self.pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error, transaction rolled back: {e}")
            raise
        finally:
            self.pool.putconn(conn)

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True):
        """Cursor inside its own transaction; rows come back as dicts unless ``dict_cursor`` is off"""
        cursor_factory = RealDictCursor if dict_cursor else None
        with self.get_connection() as conn:
            cursor = conn.cursor(cursor_factory=cursor_factory)
            try:
                yield cursor
            finally:
                cursor.close()

    def execute_query(
        self,
        query: str,
        params: Optional[Tuple] = None,
        fetch_one: bool = False,
        dict_cursor: bool = True
    ) -> Optional[Any]:
        """
        Run a row-returning statement (SELECT, or a write with RETURNING)

        Returns:
            The first row (None when nothing matched) if ``fetch_one``,
            otherwise the full list of rows
        """
        with self.get_cursor(dict_cursor=dict_cursor) as cursor:
            cursor.execute(query, params)
            return cursor.fetchone() if fetch_one else cursor.fetchall()

    def execute_update(
        self,
        query: str,
        params: Optional[Tuple] = None
    ) -> int:
        """Run a write statement and report how many rows it touched"""
        with self.get_cursor(dict_cursor=False) as cursor:
            cursor.execute(query, params)
            return cursor.rowcount

    def ping(self) -> bool:
        """Check that the database answers a trivial query"""
        try:
            self.execute_query("SELECT 1 AS ok", fetch_one=True)
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    def close(self):
        """Close every pooled connection; the next use reopens the pool"""
        if self.pool:
            self.pool.closeall()
            self.pool = None
            logger.info("Database connection pool closed")


# Global database instance
_db: Optional[Database] = None


def get_db() -> Database:
    """Process-wide Database, created on first call"""
    global _db
    if _db is None:
        _db = Database()
    return _db
