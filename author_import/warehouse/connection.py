"""
PostgreSQL connection pool for the author store (psycopg3 + psycopg_pool)

Settings come from constructor arguments, then DB_* environment variables,
then local-development defaults. Rows are returned as dictionaries.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

ENV_DEFAULTS = {
    "DB_HOST": "localhost",
    "DB_PORT": "5432",
    "DB_NAME": "openlibrary",
    "DB_USER": "importer",
}


def _setting(value, env_name: str):
    if value:
        return value
    return os.getenv(env_name, ENV_DEFAULTS.get(env_name))


class DatabaseConnectionPool:
    """
    Pooled connections to the author database

    One import keeps a single bulk insert in flight, so the pool is small.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 4,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            host: Server host (env DB_HOST)
            port: Server port (env DB_PORT)
            database: Database name (env DB_NAME)
            user: Role to connect as (env DB_USER)
            password: Role password (env DB_PASSWORD, required)
            min_size: Connections kept open
            max_size: Upper bound on connections
            timeout: Seconds to wait for a connection

        Raises:
            ValueError: If no password is configured
        """
        self.host = _setting(host, "DB_HOST")
        self.port = int(_setting(port, "DB_PORT"))
        self.database = _setting(database, "DB_NAME")
        self.user = _setting(user, "DB_USER")
        self.password = _setting(password, "DB_PASSWORD")

        if not self.password:
            raise ValueError(
                "Database password must be provided. "
                "Set DB_PASSWORD environment variable or pass to constructor."
            )

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self.conninfo = make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=int(self.timeout),
        )
        self._pool: ConnectionPool | None = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is unreachable

        Each attempt builds a fresh pool; a pool that failed to fill is closed.

        Raises:
            OperationalError: If every attempt failed
        """
        if self._pool is not None:
            return

        last_error: Exception | None = None
        for attempt in range(1, max_retries + 1):
            pool = ConnectionPool(
                conninfo=self.conninfo,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=self.timeout,
                kwargs={"row_factory": dict_row},
                open=False,
            )
            try:
                pool.open(wait=True, timeout=self.timeout)
            except (OperationalError, PoolTimeout) as e:
                pool.close()
                last_error = e
                if attempt < max_retries:
                    time.sleep(retry_delay)
                continue

            self._pool = pool
            return

        raise OperationalError(
            f"Failed to connect to {self.host}:{self.port}/{self.database} "
            f"after {max_retries} attempts: {last_error}"
        ) from last_error

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection; it returns to the pool when the block exits

        Raises:
            RuntimeError: If the pool has not been opened
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def get_cursor(self):
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                yield cur

    def execute_query(self, query, params: tuple | dict | None = None) -> list[dict]:
        """Run a statement that returns rows and commit."""
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
            conn.commit()
        return rows

    def execute_command(self, command, params: tuple | dict | None = None) -> int:
        """Run a statement without result rows, commit, and return its rowcount."""
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(command, params)
                affected = cur.rowcount
            conn.commit()
        return affected

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
