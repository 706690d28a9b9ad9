"""Document Collection Persistence Layer

SQLite-backed storage for schema-on-read JSON documents.

Design Decisions:
- One table per collection: (id TEXT PRIMARY KEY, body TEXT NOT NULL)
- Documents are stored whole as JSON; queries read fields with json_extract
- Connection-per-operation pattern (a persistent connection for :memory:)
- No business logic and no retries: sqlite3 errors propagate to the caller

Architecture:
- Every repository owns one DocumentCollection
- Expression indexes on the document fields each repository queries
"""

from __future__ import annotations

import json
import re
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from granjapro.config import default_db_path

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(value: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ValueError(f"Invalid collection or field name: {value!r}")
    return value


class DocumentCollection:
    """A named collection of JSON documents keyed by their ``id`` field.

    Storage Strategy:
        - SQLite database shared by all collections of the application
        - Table named after the collection
        - Whole document serialized to the ``body`` column

    Thread Safety:
        - Connection-per-operation pattern (no shared connections)
        - SQLite handles concurrency via file locks
    """

    def __init__(
        self,
        name: str,
        db_path: Optional[str] = None,
        indexes: Iterable[str] = (),
    ):
        """Initialize a collection.

        Args:
            name: Collection (table) name
            db_path: Path to SQLite database file. If None, uses the
                     configured default. ":memory:" keeps a private
                     in-process database alive for the collection's lifetime.
            indexes: Document fields to build expression indexes on
        """
        self.name = _check_identifier(name)
        if db_path is None:
            db_path = str(default_db_path())
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path

        # For :memory: databases, keep a persistent connection
        # (otherwise each new connection creates a fresh empty database)
        self._memory_conn = None
        if db_path == ":memory:":
            self._memory_conn = sqlite3.connect(":memory:")

        self._indexes = [_check_identifier(field) for field in indexes]
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        if self._memory_conn is not None:
            return self._memory_conn
        return sqlite3.connect(self.db_path)

    def _release(self, conn: sqlite3.Connection) -> None:
        if self._memory_conn is None:
            conn.close()

    def _init_schema(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.name} (
                    id TEXT PRIMARY KEY,
                    body TEXT NOT NULL
                )
            """)
            for field in self._indexes:
                conn.execute(f"""
                    CREATE INDEX IF NOT EXISTS idx_{self.name}_{field}
                    ON {self.name}(json_extract(body, '$.{field}'))
                """)
            conn.commit()
        finally:
            self._release(conn)

    # -----------------
    # Writes
    # -----------------
    def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new document.

        Raises:
            sqlite3.IntegrityError: If a document with the same id exists
        """
        conn = self._get_connection()
        try:
            conn.execute(
                f"INSERT INTO {self.name} (id, body) VALUES (?, ?)",
                (str(doc["id"]), json.dumps(doc, ensure_ascii=False)),
            )
            conn.commit()
            return doc
        finally:
            self._release(conn)

    def replace(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or fully replace the document with ``doc['id']``."""
        conn = self._get_connection()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO {self.name} (id, body) VALUES (?, ?)",
                (str(doc["id"]), json.dumps(doc, ensure_ascii=False)),
            )
            conn.commit()
            return doc
        finally:
            self._release(conn)

    def delete(self, doc_id: str) -> bool:
        conn = self._get_connection()
        try:
            cursor = conn.execute(f"DELETE FROM {self.name} WHERE id = ?", (str(doc_id),))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            self._release(conn)

    # -----------------
    # Reads
    # -----------------
    def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                f"SELECT body FROM {self.name} WHERE id = ?", (str(doc_id),)
            ).fetchone()
            return json.loads(row[0]) if row else None
        finally:
            self._release(conn)

    def find(
        self,
        equals: Optional[Dict[str, Any]] = None,
        between: Optional[Tuple[str, Any, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Query documents by field equality and an optional inclusive range.

        Args:
            equals: Mapping of document field to required value
            between: (field, low, high) inclusive range on one field
            order_by: Document field to sort on; ties keep insertion order
            descending: Sort direction
            limit: Maximum number of documents to return

        Returns:
            Matching documents (empty list when nothing matches)
        """
        where, params = self._where(equals, between)
        sql = f"SELECT body FROM {self.name}{where}"
        direction = "DESC" if descending else "ASC"
        if order_by:
            field = _check_identifier(order_by)
            sql += f" ORDER BY json_extract(body, '$.{field}') {direction}, rowid {direction}"
        else:
            sql += f" ORDER BY rowid {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        conn = self._get_connection()
        try:
            rows = conn.execute(sql, params).fetchall()
            return [json.loads(row[0]) for row in rows]
        finally:
            self._release(conn)

    def count(self, equals: Optional[Dict[str, Any]] = None) -> int:
        where, params = self._where(equals, None)
        conn = self._get_connection()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {self.name}{where}", params).fetchone()[0]
        finally:
            self._release(conn)

    def _where(
        self,
        equals: Optional[Dict[str, Any]],
        between: Optional[Tuple[str, Any, Any]],
    ) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        for field, value in (equals or {}).items():
            clauses.append(f"json_extract(body, '$.{_check_identifier(field)}') = ?")
            params.append(value)
        if between is not None:
            field, low, high = between
            clauses.append(
                f"json_extract(body, '$.{_check_identifier(field)}') BETWEEN ? AND ?"
            )
            params.extend([low, high])
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params
