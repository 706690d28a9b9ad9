from datetime import date

import pytest

from granjapro.models.audit import AuditAction, EntityType
from granjapro.utils.helpers.exceptions import NotFoundError, ValidationError


def test_create_lot_starts_full(lot_service):
    lot = lot_service.create_lot("L-7", "Hy-Line", 250, "P-3", entry_date=date(2024, 3, 1))

    stored = lot_service.get_lot(lot.lot_id)
    assert stored.initial_count == stored.current_count == 250
    assert stored.entry_date == date(2024, 3, 1)
    assert stored.pen_id == "P-3"


@pytest.mark.parametrize("code,breed,count,pen", [
    ("", "Hy-Line", 10, "P-1"),
    ("L-1", "  ", 10, "P-1"),
    ("L-1", "Hy-Line", 0, "P-1"),
    ("L-1", "Hy-Line", -5, "P-1"),
    ("L-1", "Hy-Line", 10, ""),
])
def test_create_lot_validation(lot_service, code, breed, count, pen):
    with pytest.raises(ValidationError):
        lot_service.create_lot(code, breed, count, pen)
    assert lot_service.list_lots() == []


def test_create_with_actor_is_audited(lot_service, audit_repository, admin):
    lot = lot_service.create_lot("L-8", "Isa Brown", 40, "P-2", actor=admin)

    entries = audit_repository.find_by_entity(lot.lot_id)
    assert len(entries) == 1
    assert entries[0].action is AuditAction.CREATE
    assert entries[0].entity_type is EntityType.LOT


def test_register_mortality(lot_service, lot):
    updated = lot_service.register_mortality(lot.lot_id, 7)

    assert updated.current_count == 93
    assert lot_service.get_lot(lot.lot_id).current_count == 93
    assert lot_service.get_lot(lot.lot_id).initial_count == 100


@pytest.mark.parametrize("deaths", [0, -1, 101])
def test_register_mortality_rejects_bad_counts(lot_service, lot, deaths):
    with pytest.raises(ValidationError):
        lot_service.register_mortality(lot.lot_id, deaths)
    assert lot_service.get_lot(lot.lot_id).current_count == 100


def test_register_mortality_unknown_lot(lot_service):
    with pytest.raises(NotFoundError):
        lot_service.register_mortality("missing", 1)


def test_lookups(lot_service, lot):
    assert lot_service.find_lot("missing") is None
    assert lot_service.find_lot(lot.lot_id) == lot
    assert [item.lot_id for item in lot_service.list_lots()] == [lot.lot_id]
