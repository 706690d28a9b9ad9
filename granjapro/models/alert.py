"""Production alert model raised by the daily analysis."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, Field

from granjapro.models.codec import decode_enum, parse_date, require


class AlertType(str, Enum):
    """Alert severity.

    CRITICAL: Needs immediate attention
    WARNING: Anomalous situation (e.g. laying rate under threshold)
    INFO: Event recorded for reference
    """
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


class AlertStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class Alert(BaseModel):
    alert_id: str = Field(default_factory=lambda: uuid4().hex)
    alert_date: date = Field(default_factory=date.today)
    lot_id: str = Field(..., min_length=1)
    alert_type: AlertType
    message: str = Field(..., min_length=1)
    status: AlertStatus = Field(default=AlertStatus.PENDING)

    @property
    def is_pending(self) -> bool:
        return self.status is AlertStatus.PENDING

    @property
    def is_critical(self) -> bool:
        return self.alert_type is AlertType.CRITICAL

    def resolve(self) -> Alert:
        self.status = AlertStatus.RESOLVED
        return self

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Alert:
        return cls(
            alert_id=require(doc, "id"),
            alert_date=parse_date(require(doc, "date")),
            lot_id=require(doc, "lotId"),
            alert_type=decode_enum(AlertType, require(doc, "type"), "type"),
            message=require(doc, "message"),
            status=decode_enum(AlertStatus, require(doc, "status"), "status"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.alert_id,
            "date": self.alert_date.isoformat(),
            "lotId": self.lot_id,
            "type": self.alert_type.value,
            "message": self.message,
            "status": self.status.value,
        }
