"""Audit Entry Model

Immutable audit log for record corrections and identity changes.

Key Principles:
- Append-only (no updates or deletes)
- One entry per changed field
- Captures who changed what, when, from which value to which, and why
- Actor name is denormalized so reports need no identity lookup
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from granjapro.models.codec import decode_enum, format_timestamp, parse_timestamp, require


class AuditAction(str, Enum):
    """Kind of change an audit entry describes."""

    CREATE = "CREATE"
    """Entity created; no field/old/new values."""

    UPDATE = "UPDATE"
    """Single field changed; field name, old and new values are required."""

    DELETE = "DELETE"
    """Entity removed or deactivated as a whole."""


class EntityType(str, Enum):
    """Entity kinds that can appear in the audit log."""

    LOT = "LOT"
    PRODUCTION = "PRODUCTION"
    USER = "USER"


class AuditEntry(BaseModel):
    """Immutable record of one field-level change.

    Attributes:
        entry_id: Unique identifier for this entry
        timestamp: When the change was applied (UTC)
        actor_id: user_id of the identity that made the change
        actor_name: Display name of that identity at the time of change
        entity_id: Id of the affected lot, production record or identity
        entity_type: Kind of the affected entity
        field_name: Changed field (None for CREATE/DELETE)
        old_value: Stored value before the change, as text
        new_value: Value after the change, as text
        reason: Free-text justification
        action: CREATE, UPDATE or DELETE

    Example:
        >>> entry = AuditEntry(
        ...     actor_id=admin.user_id,
        ...     actor_name=admin.name,
        ...     entity_id=record.record_id,
        ...     entity_type=EntityType.PRODUCTION,
        ...     field_name="total_eggs",
        ...     old_value="95",
        ...     new_value="105",
        ...     reason="miscount",
        ...     action=AuditAction.UPDATE,
        ... )
        >>> audit_repo.append(entry)
    """

    entry_id: str = Field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the change was applied (UTC timezone)",
    )
    actor_id: str = Field(..., min_length=1)
    actor_name: str = Field(default="")
    entity_id: str = Field(..., min_length=1)
    entity_type: EntityType
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    reason: str = Field(..., min_length=1)
    action: AuditAction = Field(default=AuditAction.UPDATE)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_action_fields(self) -> AuditEntry:
        if not self.reason.strip():
            raise ValueError("reason must not be blank")
        if self.action is AuditAction.UPDATE:
            missing = [
                name for name in ("field_name", "old_value", "new_value")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"UPDATE entries require {', '.join(missing)}")
        return self

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> AuditEntry:
        return cls(
            entry_id=require(doc, "id"),
            timestamp=parse_timestamp(require(doc, "timestamp")),
            actor_id=require(doc, "actorId"),
            actor_name=doc.get("actorName") or "",
            entity_id=require(doc, "entityId"),
            entity_type=decode_enum(EntityType, require(doc, "entityType"), "entityType"),
            field_name=doc.get("fieldName"),
            old_value=doc.get("oldValue"),
            new_value=doc.get("newValue"),
            reason=require(doc, "reason"),
            action=decode_enum(AuditAction, require(doc, "action"), "action"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.entry_id,
            "timestamp": format_timestamp(self.timestamp),
            "actorId": self.actor_id,
            "actorName": self.actor_name,
            "entityId": self.entity_id,
            "entityType": self.entity_type.value,
            "fieldName": self.field_name,
            "oldValue": self.old_value,
            "newValue": self.new_value,
            "reason": self.reason,
            "action": self.action.value,
        }
