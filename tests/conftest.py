"""Pytest configuration and shared fixtures for GranjaPro tests.

- Provides an isolated SQLite database per test
- Routes the security log into the test's temporary directory
- Shared fixtures for services, sessions and common identities
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from granjapro.auth.password import hash_password
from granjapro.auth.session import SessionHolder
from granjapro.models.user import Identity, UserRole
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
from granjapro.utils import logging_utils


@pytest.fixture(scope="function")
def test_db_path() -> Generator[str, None, None]:
    """Create a temporary database for each test."""
    with tempfile.NamedTemporaryFile(delete=False, suffix='.db') as f:
        db_path = f.name

    yield db_path

    # Cleanup
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def security_log(tmp_path, monkeypatch) -> Path:
    """Keep security events out of the project's artifacts directory."""
    log_file = tmp_path / "security.log"
    monkeypatch.setattr(logging_utils, "_log_file", log_file)
    return log_file


@pytest.fixture
def session() -> SessionHolder:
    return SessionHolder()


@pytest.fixture
def user_repository(test_db_path: str) -> UserRepository:
    return UserRepository(db_path=test_db_path)


@pytest.fixture
def audit_repository(test_db_path: str) -> AuditRepository:
    return AuditRepository(db_path=test_db_path)


@pytest.fixture
def lot_repository(test_db_path: str) -> LotRepository:
    return LotRepository(db_path=test_db_path)


@pytest.fixture
def production_repository(test_db_path: str) -> ProductionRepository:
    return ProductionRepository(db_path=test_db_path)


@pytest.fixture
def alert_repository(test_db_path: str) -> AlertRepository:
    return AlertRepository(db_path=test_db_path)


@pytest.fixture
def audit_trail(audit_repository: AuditRepository, session: SessionHolder) -> AuditTrail:
    return AuditTrail(repository=audit_repository, session=session)


@pytest.fixture
def auth_service(user_repository, session, audit_trail) -> AuthenticationService:
    return AuthenticationService(user_repository, session, audit_trail=audit_trail)


@pytest.fixture
def lot_service(lot_repository, audit_trail) -> LotService:
    return LotService(lot_repository, audit_trail=audit_trail)


@pytest.fixture
def production_service(production_repository, lot_repository, audit_trail) -> ProductionService:
    return ProductionService(production_repository, lot_repository, audit_trail)


@pytest.fixture
def analytics_service(lot_repository, production_repository, alert_repository) -> AnalyticsService:
    return AnalyticsService(lot_repository, production_repository, alert_repository)


@pytest.fixture
def admin(user_repository: UserRepository) -> Identity:
    """An active ADMIN identity stored with password 'admin123'."""
    identity = Identity(
        name="admin", password_hash=hash_password("admin123"), role=UserRole.ADMIN
    )
    return user_repository.insert(identity)


@pytest.fixture
def operator(user_repository: UserRepository) -> Identity:
    """An active OPERATOR identity stored with password 'operator1'."""
    identity = Identity(
        name="carla", password_hash=hash_password("operator1"), role=UserRole.OPERATOR
    )
    return user_repository.insert(identity)


@pytest.fixture
def admin_session(auth_service: AuthenticationService, admin: Identity) -> Identity:
    """Log the admin in and return its identity."""
    return auth_service.login("admin", "admin123")


@pytest.fixture
def lot(lot_service: LotService):
    return lot_service.create_lot("L-2024-01", "Lohmann Brown", 100, "P-1")


@pytest.fixture
def record(production_service: ProductionService, lot):
    return production_service.register_production(lot.lot_id, 95, 3)
