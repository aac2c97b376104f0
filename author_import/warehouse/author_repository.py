"""
PostgreSQL author store.

bulk_insert uses INSERT ... ON CONFLICT (olid) DO NOTHING so that re-running
an import over the same dump never duplicates rows. The remaining methods
are the read path used by the search tooling.
"""

from typing import Any

from psycopg import sql

from author_import.core.models import (
    Author,
    AuthorCreate,
    AuthorSearchParams,
    AuthorUpdate,
    BulkInsertResult,
)

from .connection import DatabaseConnectionPool

AUTHOR_TABLE = "author"

INSERT_COLUMNS = (
    "olid",
    "name",
    "birth_date",
    "alternate_names",
    "link",
    "rating_count",
    "average_rating",
    "gender",
    "image_url",
    "about",
)

SELECT_COLUMNS = """
    id, uuid::text AS uuid, olid, name, birth_date, alternate_names, link,
    rating_count, average_rating, gender, image_url, about, created_at, updated_at
"""

_INSERT_SQL = f"""
    INSERT INTO {AUTHOR_TABLE} ({", ".join(INSERT_COLUMNS)})
    VALUES ({", ".join(["%s"] * len(INSERT_COLUMNS))})
"""


class AuthorRepository:
    """
    Author table access.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize author repository.

        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def bulk_insert(self, authors: list[AuthorCreate]) -> BulkInsertResult:
        """
        Insert authors in one transaction, skipping existing olids.

        Args:
            authors: Authors to insert

        Returns:
            BulkInsertResult with the number of rows actually written
        """
        if not authors:
            return BulkInsertResult(inserted_count=0)

        query = _INSERT_SQL + " ON CONFLICT (olid) DO NOTHING"
        data_tuples = [_insert_params(author) for author in authors]

        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(query, data_tuples)
                inserted = max(cur.rowcount, 0)
            conn.commit()

        return BulkInsertResult(inserted_count=inserted)

    def create(self, author: AuthorCreate) -> Author:
        """
        Insert a single author.

        Raises:
            psycopg.errors.UniqueViolation: If the olid already exists
        """
        query = _INSERT_SQL + f" RETURNING {SELECT_COLUMNS}"
        rows = self.pool.execute_query(query, _insert_params(author))
        return Author(**rows[0])

    def get_by_id(self, author_id: int) -> Author | None:
        return self._fetch_one("id = %s", (author_id,))

    def get_by_olid(self, olid: str) -> Author | None:
        return self._fetch_one("olid = %s", (olid,))

    def get_by_uuid(self, uuid: str) -> Author | None:
        return self._fetch_one("uuid = %s::uuid", (uuid,))

    def get_all(self, skip: int = 0, take: int = 50) -> list[Author]:
        """Authors ordered by name, paginated."""
        query = f"""
            SELECT {SELECT_COLUMNS} FROM {AUTHOR_TABLE}
            ORDER BY name ASC, id ASC
            LIMIT %s OFFSET %s
        """
        return [Author(**row) for row in self.pool.execute_query(query, (take, skip))]

    def search(self, params: AuthorSearchParams) -> list[Author]:
        """
        Authors matching every given filter, ordered by name.

        Args:
            params: Filters and pagination

        Returns:
            At most params.take authors, after skipping params.skip
        """
        where, values = _build_filters(params)
        query = f"""
            SELECT {SELECT_COLUMNS} FROM {AUTHOR_TABLE}
            {where}
            ORDER BY name ASC, id ASC
            LIMIT %s OFFSET %s
        """
        rows = self.pool.execute_query(query, (*values, params.take, params.skip))
        return [Author(**row) for row in rows]

    def count(self, params: AuthorSearchParams | None = None) -> int:
        """Number of authors matching the filters, ignoring pagination."""
        where, values = _build_filters(params or AuthorSearchParams())
        query = f"SELECT COUNT(*) AS count FROM {AUTHOR_TABLE} {where}"
        return self.pool.execute_query(query, tuple(values))[0]["count"]

    def update(self, author_id: int, data: AuthorUpdate) -> Author | None:
        """
        Apply the fields set on data.

        Returns:
            The updated author, or None if no author has this id
        """
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return self.get_by_id(author_id)

        if "gender" in changes and changes["gender"] is not None:
            changes["gender"] = changes["gender"].value

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder())
            for column in changes
        )
        query = sql.SQL(
            "UPDATE {table} SET {assignments}, updated_at = now() "
            "WHERE id = %s RETURNING " + SELECT_COLUMNS
        ).format(table=sql.Identifier(AUTHOR_TABLE), assignments=assignments)

        rows = self.pool.execute_query(query, (*changes.values(), author_id))
        return Author(**rows[0]) if rows else None

    def delete(self, author_id: int) -> Author | None:
        """
        Delete an author.

        Returns:
            The deleted author, or None if no author has this id
        """
        query = f"DELETE FROM {AUTHOR_TABLE} WHERE id = %s RETURNING {SELECT_COLUMNS}"
        rows = self.pool.execute_query(query, (author_id,))
        return Author(**rows[0]) if rows else None

    def _fetch_one(self, condition: str, params: tuple) -> Author | None:
        query = f"SELECT {SELECT_COLUMNS} FROM {AUTHOR_TABLE} WHERE {condition} LIMIT 1"
        rows = self.pool.execute_query(query, params)
        return Author(**rows[0]) if rows else None


def _insert_params(author: AuthorCreate) -> tuple:
    return (
        author.olid,
        author.name,
        author.birth_date,
        author.alternate_names,
        author.link,
        author.rating_count,
        author.average_rating,
        author.gender.value,
        author.image_url,
        author.about,
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _build_filters(params: AuthorSearchParams) -> tuple[str, list[Any]]:
    """Build the WHERE clause shared by search and count."""
    conditions = []
    values: list[Any] = []

    if params.name:
        conditions.append("name ILIKE %s")
        values.append(f"%{_escape_like(params.name)}%")

    if params.alternate_name:
        conditions.append("%s = ANY(alternate_names)")
        values.append(params.alternate_name)

    if params.about:
        conditions.append("about ILIKE %s")
        values.append(f"%{_escape_like(params.about)}%")

    if not conditions:
        return "", values
    return "WHERE " + " AND ".join(conditions), values
