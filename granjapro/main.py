"""Application wiring and console entry point."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from granjapro.auth.session import SessionHolder
from granjapro.config import Settings, load_settings
from granjapro.repositories.alert_repository import AlertRepository
from granjapro.repositories.audit_repository import AuditRepository
from granjapro.repositories.lot_repository import LotRepository
from granjapro.repositories.production_repository import ProductionRepository
from granjapro.repositories.user_repository import UserRepository
from granjapro.services.analytics_service import AnalyticsService
from granjapro.services.audit_trail import AuditTrail
from granjapro.services.auth_service import AuthenticationService
from granjapro.services.lot_service import LotService
from granjapro.services.production_service import ProductionService
from granjapro.utils.helpers.exceptions import GranjaError
from granjapro.utils.logging_utils import configure_logging

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Everything the console needs, built once per process."""

    settings: Settings
    session: SessionHolder
    auth: AuthenticationService
    audit: AuditTrail
    lots: LotService
    production: ProductionService
    analytics: AnalyticsService


def create_application(settings: Settings) -> Application:
    db_path = settings.db_path
    session = SessionHolder()
    audit = AuditTrail(AuditRepository(db_path), session=session)
    lot_repository = LotRepository(db_path)
    production_repository = ProductionRepository(db_path)

    return Application(
        settings=settings,
        session=session,
        auth=AuthenticationService(UserRepository(db_path), session, audit_trail=audit),
        audit=audit,
        lots=LotService(lot_repository, audit_trail=audit),
        production=ProductionService(production_repository, lot_repository, audit),
        analytics=AnalyticsService(
            lot_repository,
            production_repository,
            AlertRepository(db_path),
            laying_rate_threshold=settings.laying_rate_threshold,
            feed_kg_per_bird=settings.feed_kg_per_bird,
            egg_weight_kg=settings.egg_weight_kg,
        ),
    )


def seed_admin(app: Application) -> bool:
    """Create the configured first administrator if the store has no users.

    Returns:
        True when an administrator was created
    """
    settings = app.settings
    if not settings.admin_name or not settings.admin_password:
        return False
    if app.auth.has_identities():
        return False
    app.auth.bootstrap_admin(settings.admin_name, settings.admin_password)
    return True


def main() -> int:
    from granjapro.cli.console import ConsoleUI

    try:
        settings = load_settings()
    except GranjaError as exc:
        print(f"❌ {exc}")
        return 2

    configure_logging(settings.log_level, settings.log_dir)
    logger.info("Using database %s", settings.db_path)

    app = create_application(settings)
    try:
        seed_admin(app)
    except GranjaError as exc:
        print(f"❌ Could not create the initial administrator: {exc}")
        return 2

    if not app.auth.has_identities():
        print("⚠️ No users exist yet. Set GRANJAPRO_ADMIN_NAME and "
              "GRANJAPRO_ADMIN_PASSWORD to create the first administrator.")
        return 1

    return ConsoleUI(app).run()


if __name__ == "__main__":
    raise SystemExit(main())
