"""Identity model for authentication.

Identity with name, password digest, role and active flag.

Design Decisions:
- uuid4 hex string for user_id (assigned at creation, stable across stores)
- Name is the login identifier and is unique
- Role enum for access control (ADMIN, OPERATOR)
- Password stored only as a fixed-length hex digest
- Explicit document factory: the stored digest is passed as a named field
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from granjapro.models.codec import decode_enum, format_timestamp, parse_timestamp, require
from granjapro.utils.helpers.exceptions import DocumentDecodeError

NAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6
DIGEST_LENGTH = 64


def _decode_flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise DocumentDecodeError(f"Stored field '{field}' must be true or false, got {value!r}")
    return value


class UserRole(str, Enum):
    """User role types for access control.

    ADMIN: Full access (lots, production, analytics, users, audit log)
    OPERATOR: Production registration and lookups only
    """
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"

    @property
    def label(self) -> str:
        return "Administrator" if self is UserRole.ADMIN else "Operator"


class Identity(BaseModel):
    """A named principal with a password digest and a role.

    Attributes:
        user_id: Unique identifier (uuid4 hex)
        name: Unique login name (at least 3 characters)
        password_hash: Lowercase hex digest of the password, never the plaintext
        role: User role (ADMIN, OPERATOR)
        is_active: Whether the identity may authenticate
        created_at: Creation timestamp (UTC)
    """

    user_id: str = Field(default_factory=lambda: uuid4().hex)
    name: str = Field(..., min_length=NAME_MIN_LENGTH)
    password_hash: str = Field(
        ...,
        min_length=DIGEST_LENGTH,
        max_length=DIGEST_LENGTH,
        pattern=r"^[0-9a-f]+$",
        description="One-way hex digest of the password",
    )
    role: UserRole = Field(default=UserRole.OPERATOR)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_operator(self) -> bool:
        return self.role is UserRole.OPERATOR

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Identity:
        """Rebuild an identity from its stored document."""
        return cls(
            user_id=require(doc, "id"),
            name=require(doc, "name"),
            password_hash=require(doc, "passwordDigest"),
            role=decode_enum(UserRole, require(doc, "role"), "role"),
            is_active=_decode_flag(require(doc, "active"), "active"),
            created_at=parse_timestamp(require(doc, "createdAt")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.user_id,
            "name": self.name,
            "passwordDigest": self.password_hash,
            "role": self.role.value,
            "active": self.is_active,
            "createdAt": format_timestamp(self.created_at),
        }


class IdentityResponse(BaseModel):
    """Public identity info (no password digest)."""
    user_id: str
    name: str
    role: UserRole
    is_active: bool
    created_at: datetime

    @classmethod
    def from_identity(cls, identity: Identity) -> IdentityResponse:
        """Convert Identity to a display-safe model."""
        return cls(
            user_id=identity.user_id,
            name=identity.name,
            role=identity.role,
            is_active=identity.is_active,
            created_at=identity.created_at,
        )
