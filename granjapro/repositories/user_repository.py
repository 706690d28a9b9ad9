"""Credential Store

Persistence for Identity documents in the ``identities`` collection.

Design Decisions:
- Name is unique; insert refuses duplicates with DuplicateNameError
- Lookups return None / empty lists instead of raising
- Documents are mapped through Identity.from_document / to_document
"""

from __future__ import annotations

from typing import List, Optional

from granjapro.models.user import Identity
from granjapro.repositories.document_store import DocumentCollection
from granjapro.utils.helpers.exceptions import DuplicateNameError


class UserRepository:
    """Document-store persistence for Identity objects.

    Storage Strategy:
        - Collection ``identities`` in the application database
        - Expression index on ``name`` for login lookups
    """

    COLLECTION = "identities"

    def __init__(self, db_path: Optional[str] = None):
        """Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file. If None, uses the
                    configured default location.
        """
        self.collection = DocumentCollection(self.COLLECTION, db_path, indexes=("name",))

    def find_by_name(self, name: str) -> Optional[Identity]:
        """Get identity by login name.

        Returns:
            Identity if found, None otherwise
        """
        if not name:
            return None
        docs = self.collection.find(equals={"name": name}, limit=1)
        return Identity.from_document(docs[0]) if docs else None

    def find_by_id(self, user_id: str) -> Optional[Identity]:
        if not user_id:
            return None
        doc = self.collection.get(user_id)
        return Identity.from_document(doc) if doc else None

    def exists_by_name(self, name: str) -> bool:
        if not name:
            return False
        return self.collection.count(equals={"name": name}) > 0

    def insert(self, identity: Identity) -> Identity:
        """Create a new identity.

        Raises:
            DuplicateNameError: If the name is already taken
        """
        if self.exists_by_name(identity.name):
            raise DuplicateNameError(f"User '{identity.name}' already exists")
        self.collection.insert(identity.to_document())
        return identity

    def update(self, identity: Identity) -> Identity:
        self.collection.replace(identity.to_document())
        return identity

    def delete(self, user_id: str) -> bool:
        """Physically remove an identity (business flows deactivate instead)."""
        return self.collection.delete(user_id)

    def list_all(self) -> List[Identity]:
        return [Identity.from_document(doc) for doc in self.collection.find(order_by="name")]

    def count(self) -> int:
        return self.collection.count()
