"""Egg Production Service Layer

Registration, lookups and audited corrections of production records.

Key Responsibilities:
- Validate counts before anything is stored
- Require an existing lot for every record
- Apply corrections field by field, each one audited before it is stored

Correction Rules:
- A reason and an acting ADMIN are mandatory
- Setting a field to its current value is a silent no-op (nothing audited)
- The audit entry is appended before the corrected record is persisted
- Several fields are corrected as independent steps; a failure on a later
  field leaves the earlier fields (and their audit entries) in place
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from granjapro.models.audit import AuditEntry, EntityType
from granjapro.models.production import CORRECTABLE_FIELDS, ProductionRecord
from granjapro.models.user import Identity
from granjapro.repositories.lot_repository import LotRepository
from granjapro.repositories.production_repository import ProductionRepository
from granjapro.services.audit_trail import AuditTrail
from granjapro.utils.helpers.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    validation_error_from,
)

logger = logging.getLogger(__name__)

Changes = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def _as_count(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a whole number")
    try:
        count = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number") from None
    if isinstance(value, float) and value != count:
        raise ValidationError(f"{label} must be a whole number")
    if count < 0:
        raise ValidationError(f"{label} cannot be negative")
    return count


class ProductionService:
    """Service layer for production records.

    Architecture:
        Console (presentation)
            ↓
        ProductionService (this class) ← validation + correction workflow
            ↓             ↓              ↓
        ProductionRepository  LotRepository  AuditTrail
    """

    def __init__(
        self,
        repository: ProductionRepository,
        lot_repository: LotRepository,
        audit_trail: AuditTrail,
    ):
        self.repository = repository
        self.lot_repository = lot_repository
        self.audit_trail = audit_trail

    def register_production(
        self,
        lot_id: str,
        total_eggs: int,
        broken_eggs: int,
        record_date: Optional[date] = None,
        actor: Optional[Identity] = None,
    ) -> ProductionRecord:
        """Record the eggs collected from a lot.

        Raises:
            ValidationError: Blank lot id, negative counts, broken > total
            NotFoundError: Unknown lot
        """
        if not lot_id or not lot_id.strip():
            raise ValidationError("Lot id must not be empty")
        total_eggs = _as_count(total_eggs, "Total eggs")
        broken_eggs = _as_count(broken_eggs, "Broken eggs")
        if broken_eggs > total_eggs:
            raise ValidationError("Broken eggs cannot exceed total eggs")

        if self.lot_repository.get_by_id(lot_id) is None:
            raise NotFoundError(f"No lot with id {lot_id}")

        record = ProductionRecord(
            lot_id=lot_id,
            record_date=record_date or date.today(),
            total_eggs=total_eggs,
            broken_eggs=broken_eggs,
        )
        if actor is not None:
            self.audit_trail.record_create(
                actor, record.record_id, EntityType.PRODUCTION,
                reason=f"{total_eggs} eggs ({broken_eggs} broken) registered for lot {lot_id}",
            )
        self.repository.save(record)
        logger.info("Production registered for lot %s: %s eggs, %s broken",
                    lot_id, total_eggs, broken_eggs)
        return record

    def get_record(self, record_id: str) -> ProductionRecord:
        record = self.repository.get_by_id(record_id)
        if record is None:
            raise NotFoundError(f"No production record with id {record_id}")
        return record

    def records_for_lot(self, lot_id: str) -> List[ProductionRecord]:
        if not lot_id or not lot_id.strip():
            raise ValidationError("Lot id must not be empty")
        return self.repository.list_by_lot(lot_id)

    def list_records(self) -> List[ProductionRecord]:
        return self.repository.list_all()

    def broken_egg_percentage(self, lot_id: str) -> float:
        """Share of broken eggs over all of a lot's records, in percent."""
        records = self.records_for_lot(lot_id)
        total = sum(record.total_eggs for record in records)
        if total == 0:
            return 0.0
        broken = sum(record.broken_eggs for record in records)
        return broken / total * 100

    # -----------------
    # Correction workflow
    # -----------------
    def correct_field(
        self,
        record_id: str,
        field_name: str,
        old_value: Any,
        new_value: Any,
        reason: str,
        actor: Optional[Identity],
    ) -> Optional[AuditEntry]:
        """Correct one field of a stored record, auditing the change first.

        Args:
            record_id: Record to correct
            field_name: One of CORRECTABLE_FIELDS
            old_value: Value the caller believes is stored (informational;
                       the audit entry always carries the stored value)
            new_value: Corrected value
            reason: Why the correction is made
            actor: Identity making the correction

        Returns:
            The audit entry written, or None when the value was unchanged

        Raises:
            ValidationError: Blank reason, missing actor, unknown field,
                             or a value the record rejects
            AuthorizationError: The actor is not an ADMIN
            NotFoundError: Unknown record id
        """
        if reason is None or not reason.strip():
            raise ValidationError("A reason is required for every correction")
        if actor is None:
            raise ValidationError("A correction requires an acting user")
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can correct production records")
        if field_name not in CORRECTABLE_FIELDS:
            raise ValidationError(
                f"Field '{field_name}' cannot be corrected "
                f"(allowed: {', '.join(CORRECTABLE_FIELDS)})"
            )

        record = self.get_record(record_id)
        current = getattr(record, field_name)
        corrected = _as_count(new_value, field_name)

        if corrected == current:
            logger.debug("Correction of %s.%s skipped: value unchanged", record_id, field_name)
            return None
        if old_value is not None and str(old_value).strip() != str(current):
            logger.warning(
                "Correction of %s.%s: caller expected %r but stored value is %r",
                record_id, field_name, old_value, current,
            )

        try:
            updated = record.with_changes(**{field_name: corrected})
        except PydanticValidationError as exc:
            raise validation_error_from(exc) from exc

        entry = self.audit_trail.record_update(
            actor,
            entity_id=record.record_id,
            entity_type=EntityType.PRODUCTION,
            field_name=field_name,
            old_value=current,
            new_value=corrected,
            reason=reason.strip(),
        )
        self.repository.save(updated)
        logger.info("Record %s corrected: %s %s -> %s by %s",
                    record_id, field_name, current, corrected, actor.name)
        return entry

    def correct_record(
        self,
        record_id: str,
        changes: Changes,
        reason: str,
        actor: Optional[Identity],
    ) -> List[AuditEntry]:
        """Correct several fields in order, one audited step per field.

        Not atomic: if a later field fails, earlier fields stay corrected.

        Returns:
            Audit entries written (unchanged fields produce none)
        """
        items = changes.items() if isinstance(changes, Mapping) else changes
        entries: List[AuditEntry] = []
        for field_name, new_value in items:
            entry = self.correct_field(record_id, field_name, None, new_value, reason, actor)
            if entry is not None:
                entries.append(entry)
        return entries
