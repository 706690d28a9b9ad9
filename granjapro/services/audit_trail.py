"""Audit Trail Service

Builds audit entries for record changes and answers audit-log queries.

Key Principles:
- One entry per changed field, written before the change is applied
- Append failures propagate; a correction never proceeds unaudited
- Values are stored as text regardless of the field's type
- Reading the log from the console requires an ADMIN session
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from granjapro.auth.session import SessionHolder
from granjapro.models.audit import AuditAction, AuditEntry, EntityType
from granjapro.models.user import Identity, UserRole
from granjapro.repositories.audit_repository import AuditRepository
from granjapro.utils.helpers.exceptions import (
    AuthorizationError,
    ValidationError,
    validation_error_from,
)

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class AuditTrail:
    """Writes and reads the audit log on behalf of the workflows.

    Architecture:
        ProductionService / LotService / AuthenticationService
            ↓ calls
        AuditTrail (this class) ← builds and validates entries
            ↓ calls
        AuditRepository ← append-only persistence

    Example:
        trail = AuditTrail(AuditRepository(db_path))
        trail.record_update(
            actor=admin,
            entity_id=record.record_id,
            entity_type=EntityType.PRODUCTION,
            field_name="total_eggs",
            old_value=95,
            new_value=105,
            reason="miscount",
        )
    """

    def __init__(
        self,
        repository: Optional[AuditRepository] = None,
        session: Optional[SessionHolder] = None,
    ):
        """Initialize the audit trail.

        Args:
            repository: AuditRepository for persistence. If None, creates default.
            session: Session used to gate read access. If None, reads are ungated.
        """
        self.repository = repository or AuditRepository()
        self.session = session

    # -----------------
    # Writes
    # -----------------
    def record_update(
        self,
        actor: Identity,
        entity_id: str,
        entity_type: EntityType,
        field_name: str,
        old_value: Any,
        new_value: Any,
        reason: str,
    ) -> AuditEntry:
        return self._append(
            actor,
            entity_id=entity_id,
            entity_type=entity_type,
            field_name=field_name,
            old_value=_as_text(old_value),
            new_value=_as_text(new_value),
            reason=reason,
            action=AuditAction.UPDATE,
        )

    def record_create(
        self, actor: Identity, entity_id: str, entity_type: EntityType, reason: str
    ) -> AuditEntry:
        return self._append(
            actor, entity_id=entity_id, entity_type=entity_type, reason=reason,
            action=AuditAction.CREATE,
        )

    def record_delete(
        self, actor: Identity, entity_id: str, entity_type: EntityType, reason: str
    ) -> AuditEntry:
        return self._append(
            actor, entity_id=entity_id, entity_type=entity_type, reason=reason,
            action=AuditAction.DELETE,
        )

    def _append(self, actor: Optional[Identity], **fields: Any) -> AuditEntry:
        if actor is None:
            raise ValidationError("An audit entry requires an acting user")
        try:
            entry = AuditEntry(actor_id=actor.user_id, actor_name=actor.name, **fields)
        except PydanticValidationError as exc:
            raise validation_error_from(exc) from exc

        self.repository.append(entry)
        logger.info(
            "Audit %s %s %s field=%s by %s",
            entry.action.value, entry.entity_type.value, entry.entity_id,
            entry.field_name, entry.actor_name,
        )
        return entry

    # -----------------
    # Reads
    # -----------------
    def entries_for_entity(self, entity_id: str) -> List[AuditEntry]:
        self._require_admin("view the audit log")
        return self.repository.find_by_entity(entity_id)

    def entries_by_actor(self, actor_id: str) -> List[AuditEntry]:
        self._require_admin("view the audit log")
        return self.repository.find_by_actor(actor_id)

    def entries_between(self, start: datetime, end: datetime) -> List[AuditEntry]:
        self._require_admin("view the audit log")
        if start is not None and end is not None and start > end:
            raise ValidationError("Start of the date range must not be after its end")
        return self.repository.find_by_date_range(start, end)

    def entries_by_type(self, entity_type: EntityType) -> List[AuditEntry]:
        self._require_admin("view the audit log")
        return self.repository.find_by_entity_type(entity_type)

    def all_entries(self) -> List[AuditEntry]:
        self._require_admin("view the audit log")
        return self.repository.list_all()

    def count_for_entity(self, entity_id: str) -> int:
        return self.repository.count_for_entity(entity_id)

    def _require_admin(self, action: str) -> None:
        if self.session is not None and not self.session.has_role(UserRole.ADMIN):
            raise AuthorizationError(f"Only administrators can {action}")
