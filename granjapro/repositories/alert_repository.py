"""Persistence for production alerts in the ``alerts`` collection."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from granjapro.models.alert import Alert, AlertStatus, AlertType
from granjapro.repositories.document_store import DocumentCollection
from granjapro.utils.helpers.exceptions import NotFoundError


class AlertRepository:
    """Document-store persistence for alerts.

    All finders return the most recent alerts first.
    """

    COLLECTION = "alerts"

    def __init__(self, db_path: Optional[str] = None):
        self.collection = DocumentCollection(
            self.COLLECTION, db_path, indexes=("lotId", "status", "type")
        )

    def save(self, alert: Alert) -> Alert:
        self.collection.replace(alert.to_document())
        return alert

    def get_by_id(self, alert_id: str) -> Optional[Alert]:
        if not alert_id:
            return None
        doc = self.collection.get(alert_id)
        return Alert.from_document(doc) if doc else None

    def find_by_lot(self, lot_id: str) -> List[Alert]:
        if not lot_id:
            return []
        return self._query(equals={"lotId": lot_id})

    def find_pending_by_lot(self, lot_id: str) -> List[Alert]:
        if not lot_id:
            return []
        return self._query(equals={"lotId": lot_id, "status": AlertStatus.PENDING.value})

    def find_by_type(self, alert_type: AlertType) -> List[Alert]:
        return self._query(equals={"type": AlertType(alert_type).value})

    def find_by_date_range(self, start: date, end: date) -> List[Alert]:
        if start is None or end is None:
            return []
        return self._query(between=("date", start.isoformat(), end.isoformat()))

    def find_critical_pending(self) -> List[Alert]:
        return self._query(
            equals={"type": AlertType.CRITICAL.value, "status": AlertStatus.PENDING.value}
        )

    def resolve(self, alert_id: str) -> Alert:
        """Mark an alert as resolved.

        Raises:
            NotFoundError: If no alert has this id
        """
        alert = self.get_by_id(alert_id)
        if alert is None:
            raise NotFoundError(f"No alert with id {alert_id}")
        return self.save(alert.resolve())

    def count_pending(self) -> int:
        return self.collection.count(equals={"status": AlertStatus.PENDING.value})

    def count_by_type(self, alert_type: AlertType) -> int:
        return self.collection.count(equals={"type": AlertType(alert_type).value})

    def _query(self, **criteria) -> List[Alert]:
        docs = self.collection.find(order_by="date", descending=True, **criteria)
        return [Alert.from_document(doc) for doc in docs]
