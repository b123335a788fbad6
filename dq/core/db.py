"""Database helpers for the locations catalog."""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple

import psycopg2
from psycopg2 import extras, pool

from dq.core.config import get_settings
from dq.core.errors import NotFoundError, StoreError, ValidationError
from dq.core.models import Location

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None

LOCATION_COLUMNS = (
    "id",
    "name",
    "city",
    "region",
    "category",
    "description",
    "short_description",
    "editorial_summary",
    "place_id",
    "coordinates",
    "prefecture",
    "business_status",
    "rating",
    "review_count",
    "operating_hours",
    "google_primary_type",
    "google_types",
)

UPDATABLE_COLUMNS = frozenset({"name", "description", "category", "region", "city", "editorial_summary"})

# Columns computed by the database; they must not be copied on insert.
GENERATED_COLUMNS = frozenset({"name_search_vector"})

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValidationError(f"invalid SQL identifier: {name!r}")
    return name


def _adapt(value: Any) -> Any:
    if isinstance(value, dict):
        return extras.Json(value)
    return value


class LocationStore:
    """Read/write access to the ``locations`` table and its dependents.

    Every call commits on its own; the store offers no multi-statement
    transaction to callers.
    """

    def __init__(self, table: str = "locations", page_size: Optional[int] = None) -> None:
        self.table = _identifier(table)
        self.page_size = page_size or get_settings().page_size

    def _execute(self, query: str, params: Iterable[Any] = (), fetch: Optional[str] = None) -> Tuple[Any, int]:
        with get_connection() as conn:
            try:
                with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                    cur.execute(query, tuple(params))
                    if fetch == "all":
                        rows = cur.fetchall()
                    elif fetch == "one":
                        rows = cur.fetchone()
                    else:
                        rows = None
                    rowcount = cur.rowcount
                conn.commit()
            except psycopg2.Error as exc:
                conn.rollback()
                logger.error("Statement failed: %s", exc)
                raise StoreError(str(exc).strip()) from exc
        return rows, rowcount

    def scan(
        self,
        city: Optional[str] = None,
        region: Optional[str] = None,
        category: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Location]:
        """Return every matching location ordered by name, fetched page by page."""
        clauses: List[str] = []
        params: List[Any] = []
        if city:
            clauses.append("city ILIKE %s")
            params.append(city)
        if region:
            clauses.append("region ILIKE %s")
            params.append(region)
        if category:
            clauses.append("category = %s")
            params.append(category)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        query = (
            f"SELECT {', '.join(LOCATION_COLUMNS)} FROM {self.table}{where} "
            "ORDER BY name, id LIMIT %s OFFSET %s"
        )

        locations: List[Location] = []
        offset = 0
        while True:
            page_size = self.page_size
            if limit is not None:
                page_size = min(page_size, limit - len(locations))
                if page_size <= 0:
                    break
            rows, _ = self._execute(query, [*params, page_size, offset], fetch="all")
            locations.extend(Location.from_row(row) for row in rows)
            logger.debug("Fetched %d rows at offset %d", len(rows), offset)
            if len(rows) < page_size:
                break
            offset += len(rows)
        return locations

    def get(self, location_id: str) -> Optional[Location]:
        query = f"SELECT {', '.join(LOCATION_COLUMNS)} FROM {self.table} WHERE id = %s"
        row, _ = self._execute(query, [location_id], fetch="one")
        return Location.from_row(row) if row else None

    def exists(self, location_id: str) -> bool:
        row, _ = self._execute(f"SELECT 1 AS found FROM {self.table} WHERE id = %s", [location_id], fetch="one")
        return row is not None

    def update(self, location_id: str, fields: Dict[str, Any]) -> None:
        """Update whitelisted columns; raises ``NotFoundError`` when no row matched."""
        if not fields:
            raise ValidationError("no fields to update")
        unknown = sorted(set(fields) - UPDATABLE_COLUMNS)
        if unknown:
            raise ValidationError(f"columns not updatable: {', '.join(unknown)}")

        columns = sorted(fields)
        assignments = ", ".join(f"{column} = %s" for column in columns)
        params = [fields[column] for column in columns] + [location_id]
        _, rowcount = self._execute(f"UPDATE {self.table} SET {assignments} WHERE id = %s", params)
        if rowcount == 0:
            raise NotFoundError(f"location {location_id} not found")
        logger.debug("Updated %s on %s", ", ".join(columns), location_id)

    def delete(self, location_id: str) -> bool:
        _, rowcount = self._execute(f"DELETE FROM {self.table} WHERE id = %s", [location_id])
        return rowcount > 0

    def fetch_row(self, location_id: str) -> Optional[Dict[str, Any]]:
        """Return the full row, every column included."""
        row, _ = self._execute(f"SELECT * FROM {self.table} WHERE id = %s", [location_id], fetch="one")
        return dict(row) if row else None

    def insert_row(self, row: Dict[str, Any]) -> None:
        columns = [_identifier(column) for column in row if column not in GENERATED_COLUMNS]
        placeholders = ", ".join(["%s"] * len(columns))
        query = f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})"
        self._execute(query, [_adapt(row[column]) for column in columns])

    def repoint(self, table: str, column: str, old_id: str, new_id: str) -> int:
        """Rewrite a foreign key column from ``old_id`` to ``new_id``."""
        table, column = _identifier(table), _identifier(column)
        _, rowcount = self._execute(f"UPDATE {table} SET {column} = %s WHERE {column} = %s", [new_id, old_id])
        return rowcount

    def replace_in_array(self, table: str, column: str, old_id: str, new_id: str) -> int:
        """Replace ``old_id`` inside an array-valued reference column."""
        table, column = _identifier(table), _identifier(column)
        query = f"UPDATE {table} SET {column} = array_replace({column}, %s, %s) WHERE %s = ANY({column})"
        _, rowcount = self._execute(query, [old_id, new_id, old_id])
        return rowcount
