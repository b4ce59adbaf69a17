# ============================================================================
# CLAUDE CONTEXT - STYLE REPOSITORY
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: Data access - style catalog records and raw style bytes
# PURPOSE: Lookup, create and update named styles and their content
# EXPORTS: IStyleRepository, InMemoryStyleRepository, PostgreSQLStyleRepository, get_style_repository
# DEPENDENCIES: psycopg, styles_api.config
# ============================================================================
"""
Style Repository.

The service only talks to IStyleRepository. Each write call stores the
record metadata and the raw bytes together, so a reader never sees a record
whose format disagrees with its content.

Implementations:
- InMemoryStyleRepository: process-local dict, for development and tests
- PostgreSQLStyleRepository: one row per style in {schema}.{table}

Concurrent writes to the same style name are arbitrated by the store: the
in-memory store serializes them with a lock, PostgreSQL with its own row
locking. The service does not coordinate them.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from .config import StylesAPIConfig, get_styles_config
from .exceptions import StyleNotFoundError
from .models import StyleRecord
from .util_logger import ComponentType, LoggerFactory

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "StyleRepository")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# INTERFACE
# ============================================================================

class IStyleRepository(ABC):
    """Style catalog plus raw content storage."""

    @abstractmethod
    def find_styles(self, name: str, workspace: Optional[str] = None) -> List[StyleRecord]:
        """
        All records matching a style name.

        A workspace-qualified lookup only matches styles in that workspace.
        Without a workspace, global styles match first; when no global style
        has the name, styles of every workspace do. More than one result is
        a catalog defect the caller reports.
        """

    @abstractmethod
    def list_styles(self, workspace: Optional[str] = None) -> List[StyleRecord]:
        """All records, ordered by name."""

    @abstractmethod
    def read_style(self, record: StyleRecord) -> bytes:
        """
        Raises:
            StyleNotFoundError: If the record has no stored content
        """

    @abstractmethod
    def add_style(self, record: StyleRecord, content: bytes) -> StyleRecord:
        """Create record and content together."""

    @abstractmethod
    def update_style(self, record: StyleRecord, content: bytes) -> StyleRecord:
        """Replace metadata and content of an existing record together."""


# ============================================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================================

class InMemoryStyleRepository(IStyleRepository):
    """
    Dict-backed store keyed by (workspace, name).

    Records are copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self):
        self._records: Dict[Tuple[Optional[str], str], StyleRecord] = {}
        self._content: Dict[Tuple[Optional[str], str], bytes] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(record: StyleRecord) -> Tuple[Optional[str], str]:
        return (record.workspace, record.name)

    def find_styles(self, name: str, workspace: Optional[str] = None) -> List[StyleRecord]:
        with self._lock:
            if workspace is not None:
                record = self._records.get((workspace, name))
                return [record.model_copy()] if record else []

            global_record = self._records.get((None, name))
            if global_record:
                return [global_record.model_copy()]
            return [
                r.model_copy() for (ws, n), r in sorted(self._records.items(), key=lambda i: str(i[0]))
                if n == name
            ]

    def list_styles(self, workspace: Optional[str] = None) -> List[StyleRecord]:
        with self._lock:
            records = [
                r.model_copy() for r in self._records.values()
                if workspace is None or r.workspace == workspace
            ]
        return sorted(records, key=lambda r: (r.name, r.workspace or ""))

    def read_style(self, record: StyleRecord) -> bytes:
        with self._lock:
            content = self._content.get(self._key(record))
        if content is None:
            raise StyleNotFoundError(f"No content stored for style '{record.prefixed_name}'")
        return content

    def add_style(self, record: StyleRecord, content: bytes) -> StyleRecord:
        stored = record.model_copy()
        with self._lock:
            self._records[self._key(stored)] = stored
            self._content[self._key(stored)] = bytes(content)
        logger.info(f"Added style '{stored.prefixed_name}' ({stored.format} {stored.format_version})")
        return stored.model_copy()

    def update_style(self, record: StyleRecord, content: bytes) -> StyleRecord:
        stored = record.model_copy(update={"updated_at": _utc_now()})
        with self._lock:
            if self._key(stored) not in self._records:
                raise StyleNotFoundError(f"Cannot update missing style '{stored.prefixed_name}'")
            self._records[self._key(stored)] = stored
            self._content[self._key(stored)] = bytes(content)
        logger.info(f"Updated style '{stored.prefixed_name}' ({stored.format} {stored.format_version})")
        return stored.model_copy()


# ============================================================================
# POSTGRESQL IMPLEMENTATION
# ============================================================================

class PostgreSQLStyleRepository(IStyleRepository):
    """
    PostgreSQL style store.

    Thread Safety:
    - Each method creates its own connection
    - Each write is a single transaction covering metadata and content
    """

    COLUMNS = (
        "name", "workspace", "format", "format_version", "charset",
        "filename", "title", "created_at", "updated_at"
    )

    def __init__(self, config: Optional[StylesAPIConfig] = None):
        self.config = config or get_styles_config()
        self.table = sql.Identifier(self.config.styles_schema, self.config.styles_table)
        logger.info(f"PostgreSQLStyleRepository initialized (table: {self.config.qualified_table})")

    @contextmanager
    def _get_connection(self):
        """
        Yields:
            psycopg connection with dict_row factory
        """
        conn = None
        try:
            conn = psycopg.connect(
                self.config.get_connection_string(),
                row_factory=dict_row
            )
            yield conn
        except psycopg.Error as e:
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    def _columns(self) -> sql.Composed:
        return sql.SQL(", ").join(sql.Identifier(c) for c in self.COLUMNS)

    def ensure_table(self) -> None:
        """Create the schema and styles table if missing."""
        schema_ddl = sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(
            sql.Identifier(self.config.styles_schema)
        )
        table_ddl = sql.SQL("""
            CREATE TABLE IF NOT EXISTS {table} (
                id SERIAL PRIMARY KEY,
                name TEXT NOT NULL,
                workspace TEXT,
                format TEXT,
                format_version TEXT,
                charset TEXT,
                filename TEXT,
                title TEXT,
                content BYTEA NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """).format(table=self.table)
        index_ddl = sql.SQL("""
            CREATE UNIQUE INDEX IF NOT EXISTS {index}
            ON {table} (name, COALESCE(workspace, ''))
        """).format(
            index=sql.Identifier(f"{self.config.styles_table}_name_workspace_idx"),
            table=self.table
        )

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(schema_ddl)
                cur.execute(table_ddl)
                cur.execute(index_ddl)
            conn.commit()
        logger.info(f"Ensured styles table {self.config.qualified_table}")

    def find_styles(self, name: str, workspace: Optional[str] = None) -> List[StyleRecord]:
        if workspace is not None:
            query = sql.SQL(
                "SELECT {cols} FROM {table} WHERE name = %s AND workspace = %s"
            ).format(cols=self._columns(), table=self.table)
            params: tuple = (name, workspace)
        else:
            # Global styles shadow workspace styles of the same name
            query = sql.SQL("""
                SELECT {cols} FROM {table}
                WHERE name = %s
                  AND (workspace IS NULL OR NOT EXISTS (
                        SELECT 1 FROM {table} WHERE name = %s AND workspace IS NULL))
                ORDER BY workspace NULLS FIRST
            """).format(cols=self._columns(), table=self.table)
            params = (name, name)

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        logger.debug(f"Found {len(rows)} styles named '{name}' (workspace: {workspace})")
        return [StyleRecord.model_validate(row) for row in rows]

    def list_styles(self, workspace: Optional[str] = None) -> List[StyleRecord]:
        query = sql.SQL("SELECT {cols} FROM {table}").format(cols=self._columns(), table=self.table)
        params: tuple = ()
        if workspace is not None:
            query = query + sql.SQL(" WHERE workspace = %s")
            params = (workspace,)
        query = query + sql.SQL(" ORDER BY name, workspace NULLS FIRST")

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [StyleRecord.model_validate(row) for row in rows]

    def _where_record(self) -> sql.SQL:
        return sql.SQL("name = %s AND workspace IS NOT DISTINCT FROM %s")

    def read_style(self, record: StyleRecord) -> bytes:
        query = sql.SQL("SELECT content FROM {table} WHERE {where}").format(
            table=self.table, where=self._where_record()
        )
        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (record.name, record.workspace))
                row = cur.fetchone()
        if not row:
            raise StyleNotFoundError(f"No content stored for style '{record.prefixed_name}'")
        return bytes(row["content"])

    def add_style(self, record: StyleRecord, content: bytes) -> StyleRecord:
        query = sql.SQL("""
            INSERT INTO {table} ({cols}, content)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        """).format(table=self.table, cols=self._columns())

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (
                    record.name,
                    record.workspace,
                    record.format,
                    record.format_version,
                    record.charset,
                    record.filename,
                    record.title,
                    record.created_at,
                    record.updated_at,
                    content
                ))
            conn.commit()
        logger.info(f"Added style '{record.prefixed_name}' ({record.format} {record.format_version})")
        return record

    def update_style(self, record: StyleRecord, content: bytes) -> StyleRecord:
        updated = record.model_copy(update={"updated_at": _utc_now()})
        query = sql.SQL("""
            UPDATE {table}
            SET format = %s, format_version = %s, charset = %s, filename = %s, title = %s,
                content = %s, updated_at = %s
            WHERE {where}
        """).format(table=self.table, where=self._where_record())

        with self._get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, (
                    updated.format,
                    updated.format_version,
                    updated.charset,
                    updated.filename,
                    updated.title,
                    content,
                    updated.updated_at,
                    updated.name,
                    updated.workspace
                ))
                if cur.rowcount == 0:
                    conn.rollback()
                    raise StyleNotFoundError(f"Cannot update missing style '{updated.prefixed_name}'")
            conn.commit()
        logger.info(f"Updated style '{updated.prefixed_name}' ({updated.format} {updated.format_version})")
        return updated


def get_style_repository(config: Optional[StylesAPIConfig] = None) -> IStyleRepository:
    """Repository for the configured STYLES_STORAGE backend."""
    config = config or get_styles_config()
    if config.storage_backend == "postgres":
        return PostgreSQLStyleRepository(config)
    return InMemoryStyleRepository()
