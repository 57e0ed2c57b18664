"""User profile business logic."""

import logging
from dataclasses import dataclass
from typing import Protocol

from leave_portal.domain.errors import InvalidInput, Unauthenticated, storage_errors
from leave_portal.domain.models import Identity, UserRecord

_logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user for an id, if present."""

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return the user with a case-insensitive email match, if present."""

    def create_user(
        self, user_id: str, email: str | None, name: str | None
    ) -> UserRecord:
        """Create and return a new user record."""

    def set_profile_picture(self, user_id: str, ref: str) -> None:
        """Store the blob reference for the user's profile picture."""


@dataclass
class UserService:
    """Application service for user profiles."""

    repository: UserRepository

    def ensure_user(self, identity: Identity) -> UserRecord:
        """Ensure a profile exists for an authenticated identity and return it.

        Every authenticated subject gets a profile on its first request, so
        records it owns always reference an existing user. Email and name are
        taken from the identity when present.
        """
        if not identity.is_authenticated:
            raise Unauthenticated("Caller identity is required")
        subject_id = str(identity.subject_id)
        with storage_errors("user lookup"):
            existing = self.repository.get_user(subject_id)
        if existing is not None:
            return existing

        email = normalize_email(identity.email or "") or None
        if email:
            with storage_errors("user lookup"):
                taken = self.repository.get_by_email(email)
            if taken is not None:
                raise InvalidInput("Email is already registered to another user")
        with storage_errors("user creation"):
            return self._create_or_reread(subject_id, email, identity.name or email)

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return a user profile by id."""
        with storage_errors("user lookup"):
            return self.repository.get_user(user_id)

    def _create_or_reread(
        self, user_id: str, email: str | None, name: str | None
    ) -> UserRecord:
        try:
            return self.repository.create_user(user_id, email, name)
        except Exception:
            # A concurrent first request may have created the same profile.
            winner = self.repository.get_user(user_id)
            if winner is None:
                raise
            _logger.info("User %s was created concurrently, reusing it", user_id)
            return winner


def normalize_email(email: str) -> str:
    """Return the canonical form used for the unique email index."""
    return email.strip().lower()
