"""
Workshop Database Pool

Thread-safe PostgreSQL connection pool for the hosted workshop database
(equipment catalog, entries, actions and technical reports). Each borrowed
connection is one transaction.
"""

import threading
import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import psycopg2
from psycopg2 import pool

from utils.config import get_database_config


logger = logging.getLogger(__name__)


class DatabasePool:
    """Lazily created ThreadedConnectionPool for the workshop database."""

    def __init__(self, db_config: Optional[Dict[str, Any]] = None):
        """
        Args:
            db_config: psycopg2 connection arguments. Read from the environment if omitted.

        Raises:
            ValueError: If required configuration is missing
        """
        self.db_config = db_config or get_database_config()
        self.pool: Optional[pool.AbstractConnectionPool] = None
        self.pool_lock = threading.Lock()

    def initialize_pool(self, min_connections: int = 1, max_connections: int = 5):
        """
        Open the pool. Calling it again is a no-op.

        Raises:
            psycopg2.Error: If the database cannot be reached
        """
        with self.pool_lock:
            if self.pool is not None:
                return

            try:
                self.pool = pool.ThreadedConnectionPool(
                    min_connections,
                    max_connections,
                    **self.db_config
                )
            except psycopg2.Error as e:
                logger.error(f"Could not open workshop database pool: {e}")
                raise

            logger.info(
                f"Opened workshop database pool to {self.db_config.get('host')} "
                f"({min_connections}-{max_connections} connections)"
            )

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection for one transaction.

        Commits when the block exits normally, rolls back and re-raises if
        it raises. The connection always goes back to the pool.

        Example:
            >>> with DatabasePool().get_connection() as conn:
            ...     conn.cursor().execute("SELECT id FROM equipos")
        """
        if self.pool is None:
            self.initialize_pool()

        try:
            connection = self.pool.getconn()
        except pool.PoolError:
            logger.warning("Workshop database pool exhausted")
            raise

        try:
            yield connection
            connection.commit()
        except Exception as e:
            logger.error(f"Rolling back workshop transaction: {e}")
            connection.rollback()
            raise
        finally:
            self.pool.putconn(connection)

    def close_pool(self):
        with self.pool_lock:
            if self.pool is not None:
                self.pool.closeall()
                self.pool = None
                logger.info("Closed workshop database pool")


_workshop_pool: Optional[DatabasePool] = None
_pool_lock = threading.Lock()


def get_pool() -> DatabasePool:
    """Shared pool, created on first use."""
    global _workshop_pool

    with _pool_lock:
        if _workshop_pool is None:
            _workshop_pool = DatabasePool()
        return _workshop_pool


def close_pool():
    global _workshop_pool

    with _pool_lock:
        if _workshop_pool is not None:
            _workshop_pool.close_pool()
            _workshop_pool = None


@contextmanager
def get_connection():
    """
    Transaction on the shared pool.

    Example:
        >>> with get_connection() as conn:
        ...     conn.cursor().execute("SELECT id FROM ingresos_taller")
    """
    with get_pool().get_connection() as conn:
        yield conn
