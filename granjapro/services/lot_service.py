"""Lot management: creation, mortality registration and lookups."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from granjapro.models.audit import EntityType
from granjapro.models.lot import Lot
from granjapro.models.user import Identity
from granjapro.repositories.lot_repository import LotRepository
from granjapro.services.audit_trail import AuditTrail
from granjapro.utils.helpers.exceptions import (
    NotFoundError,
    ValidationError,
    validation_error_from,
)

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} must not be empty")
    return value.strip()


class LotService:
    def __init__(self, repository: LotRepository, audit_trail: Optional[AuditTrail] = None):
        self.repository = repository
        self.audit_trail = audit_trail

    def create_lot(
        self,
        code: str,
        breed: str,
        initial_count: int,
        pen_id: str,
        actor: Optional[Identity] = None,
        entry_date: Optional[date] = None,
    ) -> Lot:
        """Register a new lot with all of its birds alive.

        Raises:
            ValidationError: Blank code/breed/pen or non-positive initial count
        """
        code = _require_text(code, "Lot code")
        breed = _require_text(breed, "Breed")
        pen_id = _require_text(pen_id, "Pen id")
        if initial_count is None or initial_count <= 0:
            raise ValidationError("Initial bird count must be greater than zero")

        lot = Lot(
            code=code,
            breed=breed,
            initial_count=initial_count,
            current_count=initial_count,
            entry_date=entry_date or date.today(),
            pen_id=pen_id,
        )
        if actor is not None and self.audit_trail is not None:
            self.audit_trail.record_create(
                actor, lot.lot_id, EntityType.LOT,
                reason=f"Lot {lot.code} created with {lot.initial_count} birds",
            )
        self.repository.save(lot)
        logger.info("Lot %s created (%s birds, pen %s)", lot.code, lot.initial_count, lot.pen_id)
        return lot

    def register_mortality(self, lot_id: str, deaths: int) -> Lot:
        """Subtract dead birds from a lot's live count.

        Raises:
            ValidationError: deaths <= 0 or more deaths than live birds
            NotFoundError: Unknown lot id
        """
        if deaths is None or deaths <= 0:
            raise ValidationError("Number of deaths must be greater than zero")
        lot = self.get_lot(lot_id)
        if deaths > lot.current_count:
            raise ValidationError(
                f"Cannot register {deaths} deaths: lot {lot.code} has {lot.current_count} live birds"
            )
        try:
            lot = lot.with_changes(current_count=lot.current_count - deaths)
        except PydanticValidationError as exc:
            raise validation_error_from(exc) from exc
        self.repository.save(lot)
        logger.info("Lot %s mortality %s, %s birds left", lot.code, deaths, lot.current_count)
        return lot

    def find_lot(self, lot_id: str) -> Optional[Lot]:
        return self.repository.get_by_id(lot_id)

    def get_lot(self, lot_id: str) -> Lot:
        lot = self.repository.get_by_id(lot_id)
        if lot is None:
            raise NotFoundError(f"No lot with id {lot_id}")
        return lot

    def list_lots(self) -> List[Lot]:
        return self.repository.list_all()
