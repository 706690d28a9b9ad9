"""Persistence for ProductionRecord documents in the ``production_records`` collection."""

from __future__ import annotations

from typing import List, Optional

from granjapro.models.production import ProductionRecord
from granjapro.repositories.document_store import DocumentCollection


class ProductionRepository:
    """CRUD for production records without business logic.

    Count validation and correction auditing live in ProductionService.
    """

    COLLECTION = "production_records"

    def __init__(self, db_path: Optional[str] = None):
        self.collection = DocumentCollection(self.COLLECTION, db_path, indexes=("lotId", "date"))

    def save(self, record: ProductionRecord) -> ProductionRecord:
        """Create or replace a production record.

        Returns:
            The saved record (same instance)
        """
        self.collection.replace(record.to_document())
        return record

    def get_by_id(self, record_id: str) -> Optional[ProductionRecord]:
        if not record_id:
            return None
        doc = self.collection.get(record_id)
        return ProductionRecord.from_document(doc) if doc else None

    def list_all(self) -> List[ProductionRecord]:
        return [ProductionRecord.from_document(doc) for doc in self.collection.find(order_by="date")]

    def list_by_lot(self, lot_id: str) -> List[ProductionRecord]:
        """Records of one lot in date order (empty list if none)."""
        if not lot_id:
            return []
        docs = self.collection.find(equals={"lotId": lot_id}, order_by="date")
        return [ProductionRecord.from_document(doc) for doc in docs]
