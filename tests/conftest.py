"""
Pytest configuration and fixtures for author importer tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import json
import os
from pathlib import Path
from typing import Generator

import pytest

from author_import.core.models import AuthorCreate, BulkInsertResult


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DUMP FIXTURES
# =======================

def author_line(olid: str, payload: dict | None = None, raw_payload: str | None = None) -> str:
    """Build one author row of the dump."""
    if raw_payload is None:
        payload = payload if payload is not None else {"name": f"Author {olid}", "key": f"/authors/{olid}"}
        raw_payload = json.dumps(payload)
    return "\t".join(["/type/author", f"/authors/{olid}", "1", "2008-04-01T03:28:50.625462", raw_payload])


@pytest.fixture
def make_author_line():
    """Factory for author rows"""
    return author_line


@pytest.fixture
def write_dump(tmp_path):
    """
    Write lines to a dump file and return its path

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Callable taking a list of lines and an optional file name
    """
    def _write(lines: list[str], name: str = "authors.txt", newline: str = "\n") -> Path:
        path = tmp_path / name
        path.write_bytes(newline.join(lines).encode("utf-8") + newline.encode("utf-8"))
        return path

    return _write


# =======================
# SINK FIXTURES
# =======================

class RecordingSink:
    """
    In-memory store with skip-duplicate semantics.

    Attributes:
        batches: olids of every bulk_insert call, in call order
        stored: olid -> AuthorCreate of accepted rows
        fail_calls: one-based call numbers that raise
        fail_olids: olids whose presence in a call makes it raise
    """

    def __init__(self):
        self.batches: list[list[str]] = []
        self.stored: dict[str, AuthorCreate] = {}
        self.fail_calls: set[int] = set()
        self.fail_olids: set[str] = set()

    def bulk_insert(self, authors: list[AuthorCreate]) -> BulkInsertResult:
        self.batches.append([a.olid for a in authors])
        if len(self.batches) in self.fail_calls:
            raise RuntimeError(f"connection reset during call {len(self.batches)}")
        if any(a.olid in self.fail_olids for a in authors):
            raise RuntimeError("value too long for type character varying")

        inserted = 0
        for author in authors:
            if author.olid not in self.stored:
                self.stored[author.olid] = author
                inserted += 1
        return BulkInsertResult(inserted_count=inserted)


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Fresh in-memory sink for a single test"""
    return RecordingSink()


@pytest.fixture
def sink_factory():
    """Factory for in-memory sinks, for tests that need several"""
    return RecordingSink


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

INIT_SQL_PATH = Path(__file__).parent.parent / "docker" / "init-db.sql"


@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance with the author schema applied
    """
    import psycopg
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_importer",
        password="test_password",
        dbname="test_openlibrary",
    ) as postgres:
        conninfo = (
            f"host={postgres.get_container_host_ip()} "
            f"port={postgres.get_exposed_port(5432)} "
            "dbname=test_openlibrary user=test_importer password=test_password"
        )
        with psycopg.connect(conninfo) as conn:
            with conn.cursor() as cur:
                cur.execute(INIT_SQL_PATH.read_text())
            conn.commit()

        yield postgres


@pytest.fixture
def db_pool(postgres_container) -> Generator:
    """
    Open a connection pool on the test database with an empty author table

    Args:
        postgres_container: PostgreSQL container fixture

    Yields:
        Open DatabaseConnectionPool
    """
    from author_import.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_openlibrary",
        user="test_importer",
        password="test_password",
    )
    pool.open()
    pool.execute_command("TRUNCATE TABLE author RESTART IDENTITY")

    yield pool

    pool.close()


@pytest.fixture
def db_env(postgres_container, monkeypatch):
    """Point the DB_* environment variables at the test database"""
    monkeypatch.setenv("DB_HOST", postgres_container.get_container_host_ip())
    monkeypatch.setenv("DB_PORT", str(postgres_container.get_exposed_port(5432)))
    monkeypatch.setenv("DB_NAME", "test_openlibrary")
    monkeypatch.setenv("DB_USER", "test_importer")
    monkeypatch.setenv("DB_PASSWORD", "test_password")
    return os.environ
