"""Authentication Service

Credential checks, session start/end, role queries and the admin-only
identity management operations.

Critical Rules:
- Unknown name and wrong password fail with the same message
- Inactive identities never authenticate, even with the right password
- Only an ADMIN session can create, deactivate or list identities
- Passwords are validated before hashing and never stored or logged
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from granjapro.auth.password import hash_password, verify_password
from granjapro.auth.session import SessionHolder
from granjapro.models.audit import EntityType
from granjapro.models.codec import decode_enum
from granjapro.models.user import (
    NAME_MIN_LENGTH,
    PASSWORD_MIN_LENGTH,
    Identity,
    UserRole,
)
from granjapro.repositories.user_repository import UserRepository
from granjapro.services.audit_trail import AuditTrail
from granjapro.utils.helpers.exceptions import (
    AccountInactiveError,
    AuthenticationError,
    AuthorizationError,
    DocumentDecodeError,
    DuplicateNameError,
    NotFoundError,
    ValidationError,
    validation_error_from,
)
from granjapro.utils.logging_utils import log_auth_event

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Service layer for login and identity management.

    Architecture:
        Console (presentation)
            ↓
        AuthenticationService (this class) ← enforces role gates
            ↓                  ↓
        UserRepository     SessionHolder
    """

    def __init__(
        self,
        repository: UserRepository,
        session: SessionHolder,
        audit_trail: Optional[AuditTrail] = None,
    ):
        """Initialize service with dependencies.

        Args:
            repository: Credential store
            session: Session holder shared with the rest of the application
            audit_trail: Records identity creation/deactivation when given
        """
        self.repository = repository
        self.session = session
        self.audit_trail = audit_trail

    # -----------------
    # Login / logout
    # -----------------
    def login(self, name: str, plaintext: str) -> Identity:
        """Authenticate and start a session.

        Raises:
            ValidationError: Blank name or password
            AuthenticationError: Unknown name or wrong password (same message)
            AccountInactiveError: Identity has been deactivated
        """
        if not name or not name.strip():
            raise ValidationError("Username must not be empty")
        if not plaintext or not plaintext.strip():
            raise ValidationError("Password must not be empty")

        identity = self.repository.find_by_name(name)
        if identity is None:
            log_auth_event("login_failed", name=name)
            raise AuthenticationError()

        if not identity.is_active:
            log_auth_event("login_inactive", name=name, user_id=identity.user_id)
            raise AccountInactiveError("Account is inactive. Contact an administrator")

        if not verify_password(plaintext, identity.password_hash):
            log_auth_event("login_failed", name=name)
            raise AuthenticationError()

        self.session.start_session(identity)
        log_auth_event("login_succeeded", name=identity.name, user_id=identity.user_id,
                       role=identity.role.value)
        logger.info("User %s logged in as %s", identity.name, identity.role.value)
        return identity

    def logout(self) -> None:
        identity = self.session.current_identity()
        self.session.end_session()
        if identity is not None:
            log_auth_event("logout", name=identity.name, user_id=identity.user_id)
            logger.info("User %s logged out", identity.name)

    # -----------------
    # Role queries (never raise)
    # -----------------
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated()

    def is_admin(self) -> bool:
        return self.session.has_role(UserRole.ADMIN)

    def is_operator(self) -> bool:
        return self.session.has_role(UserRole.OPERATOR)

    def current_identity(self) -> Optional[Identity]:
        return self.session.current_identity()

    def require_admin(self, action: str) -> Identity:
        """Return the current admin identity or raise AuthorizationError."""
        if not self.is_admin():
            raise AuthorizationError(f"Only administrators can {action}")
        return self.session.current_identity()

    # -----------------
    # Identity management (ADMIN only)
    # -----------------
    def create_identity(
        self, name: str, plaintext: str, role: Union[UserRole, str]
    ) -> Identity:
        """Create a new active identity.

        Raises:
            AuthorizationError: Current session is not ADMIN
            ValidationError: Name/password too short or blank, unknown role
            DuplicateNameError: Name already taken
        """
        admin = self.require_admin("create users")
        identity = self._build_identity(name, plaintext, role)
        self.repository.insert(identity)

        if self.audit_trail is not None:
            self.audit_trail.record_create(
                admin, identity.user_id, EntityType.USER,
                reason=f"User '{identity.name}' created with role {identity.role.value}",
            )
        log_auth_event("identity_created", name=identity.name, user_id=identity.user_id,
                       role=identity.role.value, by=admin.name)
        return identity

    def deactivate(self, user_id: str) -> Identity:
        """Soft-delete an identity so it can no longer log in.

        Raises:
            AuthorizationError: Current session is not ADMIN
            NotFoundError: No identity with this id
            ValidationError: The admin tries to deactivate their own account
        """
        admin = self.require_admin("deactivate users")
        if user_id == admin.user_id:
            raise ValidationError("You cannot deactivate your own account")
        identity = self.repository.find_by_id(user_id)
        if identity is None:
            raise NotFoundError(f"No user with id {user_id}")
        if not identity.is_active:
            return identity

        identity.is_active = False
        if self.audit_trail is not None:
            self.audit_trail.record_update(
                admin, identity.user_id, EntityType.USER,
                field_name="is_active", old_value=True, new_value=False,
                reason=f"User '{identity.name}' deactivated",
            )
        self.repository.update(identity)
        log_auth_event("identity_deactivated", name=identity.name,
                       user_id=identity.user_id, by=admin.name)
        return identity

    def list_identities(self) -> List[Identity]:
        self.require_admin("list users")
        return self.repository.list_all()

    def has_identities(self) -> bool:
        return self.repository.count() > 0

    def bootstrap_admin(self, name: str, plaintext: str) -> Identity:
        """Create the first ADMIN identity of an empty credential store.

        Raises:
            AuthorizationError: The store already holds identities
        """
        if self.has_identities():
            raise AuthorizationError("Users already exist; ask an administrator to add more")
        identity = self._build_identity(name, plaintext, UserRole.ADMIN)
        self.repository.insert(identity)
        log_auth_event("admin_bootstrapped", name=identity.name, user_id=identity.user_id)
        logger.info("Initial administrator %s created", identity.name)
        return identity

    def _build_identity(
        self, name: str, plaintext: str, role: Union[UserRole, str]
    ) -> Identity:
        if not name or not name.strip():
            raise ValidationError("Name must not be empty")
        if len(name) < NAME_MIN_LENGTH:
            raise ValidationError(f"Name must be at least {NAME_MIN_LENGTH} characters")
        if not plaintext or not plaintext.strip():
            raise ValidationError("Password must not be empty")
        if len(plaintext) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        try:
            role = decode_enum(UserRole, str(getattr(role, "value", role)).upper(), "role")
        except DocumentDecodeError:
            raise ValidationError("Invalid role. Must be ADMIN or OPERATOR") from None

        if self.repository.exists_by_name(name):
            raise DuplicateNameError(f"User '{name}' already exists")

        try:
            return Identity(name=name, password_hash=hash_password(plaintext), role=role)
        except PydanticValidationError as exc:
            raise validation_error_from(exc) from exc
