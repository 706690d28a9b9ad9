"""Models package for GranjaPro.

Identity and roles (authentication)
AuditEntry (correction log)
Lot, ProductionRecord, Alert (farm records)
"""

from granjapro.models.alert import Alert, AlertStatus, AlertType
from granjapro.models.audit import AuditAction, AuditEntry, EntityType
from granjapro.models.lot import Lot
from granjapro.models.production import CORRECTABLE_FIELDS, ProductionRecord
from granjapro.models.user import Identity, IdentityResponse, UserRole

__all__ = [
    "Alert",
    "AlertStatus",
    "AlertType",
    "AuditAction",
    "AuditEntry",
    "EntityType",
    "CORRECTABLE_FIELDS",
    "Identity",
    "IdentityResponse",
    "Lot",
    "ProductionRecord",
    "UserRole",
]
