"""Persistence for Lot documents in the ``lots`` collection."""

from __future__ import annotations

from typing import List, Optional

from granjapro.models.lot import Lot
from granjapro.repositories.document_store import DocumentCollection


class LotRepository:
    COLLECTION = "lots"

    def __init__(self, db_path: Optional[str] = None):
        self.collection = DocumentCollection(self.COLLECTION, db_path, indexes=("code",))

    def save(self, lot: Lot) -> Lot:
        """Create or replace a lot."""
        self.collection.replace(lot.to_document())
        return lot

    def get_by_id(self, lot_id: str) -> Optional[Lot]:
        if not lot_id:
            return None
        doc = self.collection.get(lot_id)
        return Lot.from_document(doc) if doc else None

    def list_all(self) -> List[Lot]:
        return [Lot.from_document(doc) for doc in self.collection.find(order_by="entryDate")]
