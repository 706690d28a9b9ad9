"""Session Holder

Holds the single authenticated identity of the running process.

States:
    Empty            -> start_session(identity) -> Active(identity)
    Active(identity) -> end_session()           -> Empty

The holder is created by the application wiring and passed to the services
that need it; there is no module-level instance. Transitions and reads are
guarded by a lock so the holder stays consistent if the console is ever
hosted alongside other threads.
"""

from __future__ import annotations

import threading
from typing import Optional

from granjapro.models.user import Identity, UserRole
from granjapro.utils.helpers.exceptions import InvalidSessionError

UNAUTHENTICATED_NAME = "unauthenticated"


class SessionHolder:
    """Process-wide slot for the currently authenticated identity."""

    def __init__(self) -> None:
        self._identity: Optional[Identity] = None
        self._lock = threading.Lock()

    def start_session(self, identity: Optional[Identity]) -> None:
        """Load an identity into the session.

        Raises:
            InvalidSessionError: If identity is None or inactive
        """
        if identity is None:
            raise InvalidSessionError("Cannot start a session without an identity")
        if not identity.is_active:
            raise InvalidSessionError(f"Identity '{identity.name}' is inactive")
        with self._lock:
            self._identity = identity

    def end_session(self) -> None:
        with self._lock:
            self._identity = None

    def is_authenticated(self) -> bool:
        with self._lock:
            return self._identity is not None

    def current_identity(self) -> Optional[Identity]:
        with self._lock:
            return self._identity

    def has_role(self, role: UserRole) -> bool:
        with self._lock:
            if self._identity is None:
                return False
            try:
                return self._identity.role is UserRole(role)
            except ValueError:
                return False

    def display_name(self) -> str:
        with self._lock:
            return self._identity.name if self._identity is not None else UNAUTHENTICATED_NAME
