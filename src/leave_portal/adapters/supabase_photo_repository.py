"""Supabase-backed photo repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from leave_portal.domain.models import PhotoRecord
from leave_portal.services.photos import PhotoRepository

_COLUMNS = (
    "id, user_id, storage_key, url, caption, content_type, size_bytes, created_at"
)


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo metadata persistence."""

    client: Client

    def create_photo(self, record: PhotoRecord) -> PhotoRecord:
        """Create a photo metadata row and return it."""
        response = (
            self.client.table("photos")
            .insert(
                {
                    "id": str(record.id),
                    "user_id": record.user_id,
                    "storage_key": record.storage_key,
                    "url": record.url,
                    "caption": record.caption,
                    "content_type": record.content_type,
                    "size_bytes": record.size_bytes,
                    "created_at": record.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create photo metadata")
        return _parse_row(response.data[0])

    def list_by_user(self, user_id: str) -> list[PhotoRecord]:
        """Return photo metadata for a user, newest first."""
        response = (
            self.client.table("photos")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> PhotoRecord:
    caption = row.get("caption")
    return PhotoRecord(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        storage_key=str(row["storage_key"]),
        url=str(row["url"]),
        caption=str(caption) if caption is not None else None,
        content_type=str(row.get("content_type") or "image/jpeg"),
        size_bytes=int(row.get("size_bytes") or 0),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
