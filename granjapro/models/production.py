"""Egg production record model.

One record per lot per collection round. Corrections build a new record
through with_changes so they pass the same rules as creation.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from granjapro.models.codec import parse_date, require

CORRECTABLE_FIELDS = ("total_eggs", "broken_eggs")


class ProductionRecord(BaseModel):
    """Eggs collected from a lot on a given day.

    Attributes:
        record_id: Unique identifier (uuid4 hex)
        lot_id: Lot the eggs came from
        record_date: Collection date
        total_eggs: Eggs collected, broken ones included
        broken_eggs: Eggs found broken
    """

    record_id: str = Field(default_factory=lambda: uuid4().hex)
    lot_id: str = Field(..., min_length=1)
    record_date: date = Field(default_factory=date.today)
    total_eggs: int = Field(..., ge=0)
    broken_eggs: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _broken_within_total(self) -> ProductionRecord:
        if self.broken_eggs > self.total_eggs:
            raise ValueError("broken_eggs cannot be greater than total_eggs")
        return self

    def with_changes(self, **changes: Any) -> ProductionRecord:
        """Return a validated copy with ``changes`` applied; self is untouched."""
        return type(self).model_validate({**self.model_dump(), **changes})

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> ProductionRecord:
        return cls(
            record_id=require(doc, "id"),
            lot_id=require(doc, "lotId"),
            record_date=parse_date(require(doc, "date")),
            total_eggs=require(doc, "totalEggs"),
            broken_eggs=doc.get("brokenEggs", 0),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.record_id,
            "lotId": self.lot_id,
            "date": self.record_date.isoformat(),
            "totalEggs": self.total_eggs,
            "brokenEggs": self.broken_eggs,
        }
