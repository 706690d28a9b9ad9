"""Audit Log Persistence Layer

Append-only storage for audit entries in the ``audit_entries`` collection.

Design Decisions:
- Shares the application database with the other collections
- Append-only operations (no update or delete methods exist)
- Finders return empty lists, never None
- Expression indexes on the fields used by the finders
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from granjapro.models.audit import AuditEntry, EntityType
from granjapro.models.codec import format_timestamp
from granjapro.repositories.document_store import DocumentCollection


class AuditRepository:
    """Document-store persistence for audit entries.

    Immutability:
        - No update() or delete() methods
        - Entries are write-once, read-many

    Ordering:
        - find_by_entity: chronological (oldest first)
        - everything else: most recent first
    """

    COLLECTION = "audit_entries"

    def __init__(self, db_path: Optional[str] = None):
        self.collection = DocumentCollection(
            self.COLLECTION,
            db_path,
            indexes=("actorId", "entityId", "entityType", "timestamp"),
        )

    def append(self, entry: AuditEntry) -> AuditEntry:
        """Persist a new audit entry.

        Raises:
            sqlite3.IntegrityError: If an entry with the same id already exists
        """
        self.collection.insert(entry.to_document())
        return entry

    def find_by_actor(self, actor_id: str) -> List[AuditEntry]:
        if not actor_id:
            return []
        return self._query(equals={"actorId": actor_id}, descending=True)

    def find_by_entity(self, entity_id: str) -> List[AuditEntry]:
        if not entity_id:
            return []
        return self._query(equals={"entityId": entity_id}, descending=False)

    def find_by_date_range(self, start: datetime, end: datetime) -> List[AuditEntry]:
        """Entries whose timestamp falls within [start, end], most recent first."""
        if start is None or end is None:
            return []
        return self._query(
            between=("timestamp", format_timestamp(start), format_timestamp(end)),
            descending=True,
        )

    def find_by_entity_type(self, entity_type: EntityType) -> List[AuditEntry]:
        if entity_type is None:
            return []
        return self._query(equals={"entityType": EntityType(entity_type).value}, descending=True)

    def list_all(self) -> List[AuditEntry]:
        return self._query(descending=True)

    def count_for_entity(self, entity_id: str) -> int:
        if not entity_id:
            return 0
        return self.collection.count(equals={"entityId": entity_id})

    def _query(self, descending: bool, **criteria) -> List[AuditEntry]:
        docs = self.collection.find(order_by="timestamp", descending=descending, **criteria)
        return [AuditEntry.from_document(doc) for doc in docs]
