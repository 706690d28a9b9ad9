"""Lot Model

A lot is a flock of laying hens housed together in one pen.

State Rules:
- current_count starts equal to initial_count
- Mortality only ever lowers current_count
- current_count can never exceed initial_count or drop below zero
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from granjapro.models.codec import parse_date, require


class Lot(BaseModel):
    """A flock of birds tracked as one production unit.

    Attributes:
        lot_id: Unique identifier (uuid4 hex)
        code: Farm-facing lot code (e.g. "L-2024-03")
        breed: Bird breed
        initial_count: Birds at entry
        current_count: Live birds now
        entry_date: Date the lot entered the farm
        pen_id: Pen housing the lot
    """

    lot_id: str = Field(default_factory=lambda: uuid4().hex)
    code: str = Field(..., min_length=1)
    breed: str = Field(..., min_length=1)
    initial_count: int = Field(..., ge=0)
    current_count: int = Field(..., ge=0)
    entry_date: date = Field(default_factory=date.today)
    pen_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _current_within_initial(self) -> Lot:
        if self.current_count > self.initial_count:
            raise ValueError("current_count cannot be greater than initial_count")
        return self

    def with_changes(self, **changes: Any) -> Lot:
        """Return a validated copy with ``changes`` applied; self is untouched."""
        return type(self).model_validate({**self.model_dump(), **changes})

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Lot:
        return cls(
            lot_id=require(doc, "id"),
            code=require(doc, "code"),
            breed=require(doc, "breed"),
            initial_count=require(doc, "initialCount"),
            current_count=require(doc, "currentCount"),
            entry_date=parse_date(require(doc, "entryDate")),
            pen_id=require(doc, "penId"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.lot_id,
            "code": self.code,
            "breed": self.breed,
            "initialCount": self.initial_count,
            "currentCount": self.current_count,
            "entryDate": self.entry_date.isoformat(),
            "penId": self.pen_id,
        }
