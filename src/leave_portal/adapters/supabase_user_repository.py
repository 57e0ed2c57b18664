"""Supabase-backed user repository."""

from dataclasses import dataclass

from supabase import Client

from leave_portal.domain.models import UserRecord
from leave_portal.services.users import UserRepository

_COLUMNS = "id, email, name, profile_picture_ref"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user for an id, if present."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        return None

    def get_by_email(self, email: str) -> UserRecord | None:
        """Return the user with a matching email, ignoring case."""
        response = (
            self.client.table("users")
            .select(_COLUMNS)
            .ilike("email", _escape_like(email))
            .limit(1)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        return None

    def create_user(
        self, user_id: str, email: str | None, name: str | None
    ) -> UserRecord:
        """Create a user row, keeping an existing row with the same id."""
        response = (
            self.client.table("users")
            .upsert(
                {"id": user_id, "email": email, "name": name},
                on_conflict="id",
                ignore_duplicates=True,
            )
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        existing = self.get_user(user_id)
        if existing is None:
            raise RuntimeError("Failed to create user in Supabase")
        return existing

    def set_profile_picture(self, user_id: str, ref: str) -> None:
        """Update the profile picture reference for a user."""
        response = (
            self.client.table("users")
            .update({"profile_picture_ref": ref})
            .eq("id", user_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"User {user_id} not found for profile picture")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _parse_row(row: dict[str, object]) -> UserRecord:
    email = row.get("email")
    name = row.get("name") or email
    picture = row.get("profile_picture_ref")
    return UserRecord(
        id=str(row["id"]),
        email=str(email) if email else None,
        name=str(name) if name else None,
        profile_picture_ref=str(picture) if picture else None,
    )
