"""Photo upload pipeline: decode, store blob, record metadata."""

import base64
import binascii
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4

from leave_portal.domain.errors import (
    Forbidden,
    InvalidInput,
    PayloadTooLarge,
    StorageFailure,
    Unauthenticated,
    storage_errors,
)
from leave_portal.domain.models import (
    REVIEWER_ROLE,
    Identity,
    PhotoRecord,
    utc_now,
)
from leave_portal.services.users import UserRepository

_logger = logging.getLogger(__name__)

DEFAULT_MAX_PHOTO_BYTES = 5 * 1024 * 1024
MAX_CAPTION_LENGTH = 500


class PhotoRepository(Protocol):
    """Persistence interface for photo metadata."""

    def create_photo(self, record: PhotoRecord) -> PhotoRecord:
        """Insert a photo metadata row and return it as stored."""

    def list_by_user(self, user_id: str) -> list[PhotoRecord]:
        """Return a user's photos, newest first."""


class BlobStore(Protocol):
    """Interface for path-addressed binary storage."""

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under a new key and return a public URL."""

    def delete(self, key: str) -> None:
        """Remove the object stored under a key."""


@dataclass
class PhotoService:
    """Validates uploads and persists them to blob and record storage."""

    photo_repository: PhotoRepository
    blob_store: BlobStore
    user_repository: UserRepository
    max_bytes: int = DEFAULT_MAX_PHOTO_BYTES
    reviewer_roles: frozenset[str] = field(
        default_factory=lambda: frozenset({REVIEWER_ROLE})
    )
    clock: Callable[[], datetime] = utc_now

    def upload(  # noqa: PLR0913
        self,
        identity: Identity,
        image_data: str | bytes,
        caption: str | None = None,
        content_type: str | None = None,
        *,
        set_as_profile: bool = False,
    ) -> PhotoRecord:
        """Decode and store an uploaded image, returning the persisted record."""
        if not identity.is_authenticated:
            raise Unauthenticated("Caller identity is required")
        user_id = str(identity.subject_id)
        declared_type, payload = _split_data_url(image_data)
        image_bytes = _decode_base64(payload, self.max_bytes)
        resolved_type = _resolve_content_type(
            content_type or declared_type, image_bytes
        )
        cleaned_caption = _clean_caption(caption)

        photo_id = uuid4()
        key = storage_key(user_id, photo_id)
        with storage_errors("blob upload"):
            url = self.blob_store.upload(key, image_bytes, resolved_type)

        record = PhotoRecord(
            id=photo_id,
            user_id=user_id,
            storage_key=key,
            url=url,
            caption=cleaned_caption,
            content_type=resolved_type,
            size_bytes=len(image_bytes),
            created_at=self.clock(),
        )
        try:
            created = self.photo_repository.create_photo(record)
        except Exception as exc:
            self._discard_orphan(key)
            raise StorageFailure("photo record write failed") from exc

        _logger.info(
            "Photo %s stored for %s (%s bytes)", created.id, user_id, len(image_bytes)
        )
        if set_as_profile:
            self._set_profile_picture(user_id, created.url)
        return created

    def list_for_owner(self, identity: Identity, user_id: str) -> list[PhotoRecord]:
        """Return a user's photos, newest first."""
        if not identity.is_authenticated:
            raise Unauthenticated("Caller identity is required")
        is_reviewer = any(identity.has_role(role) for role in self.reviewer_roles)
        if identity.subject_id != user_id and not is_reviewer:
            raise Forbidden("Cannot access another user's photos")
        with storage_errors("photo listing"):
            photos = self.photo_repository.list_by_user(user_id)
        return sorted(
            photos, key=lambda photo: (photo.created_at, str(photo.id)), reverse=True
        )

    def _discard_orphan(self, key: str) -> None:
        try:
            self.blob_store.delete(key)
        except Exception:
            _logger.exception("Failed to remove orphaned blob %s", key)
        else:
            _logger.warning("Removed orphaned blob %s after record write failure", key)

    def _set_profile_picture(self, user_id: str, url: str) -> None:
        try:
            self.user_repository.set_profile_picture(user_id, url)
        except Exception:
            _logger.exception("Failed to update profile picture for %s", user_id)


def storage_key(user_id: str, photo_id: UUID) -> str:
    """Return the blob key for a photo."""
    return f"photos/{user_id}/{photo_id}"


def _split_data_url(image_data: str | bytes) -> tuple[str | None, str]:
    """Split an optional ``data:<mime>;base64,`` prefix from the payload."""
    if isinstance(image_data, bytes):
        try:
            text = image_data.decode("ascii")
        except UnicodeDecodeError as exc:
            raise InvalidInput("image_data must be base64 text") from exc
    elif isinstance(image_data, str):
        text = image_data
    else:
        raise InvalidInput("image_data must be base64 text")

    text = text.strip()
    if not text.startswith("data:"):
        return None, text
    header, separator, payload = text.partition(",")
    if not separator or not header.endswith(";base64"):
        raise InvalidInput("image_data data URL must be base64 encoded")
    mime_type = header[len("data:") : -len(";base64")].split(";")[0].strip()
    return mime_type or None, payload


def _decode_base64(payload: str, max_bytes: int) -> bytes:
    compact = "".join(payload.split())
    if len(compact) > _max_encoded_length(max_bytes):
        raise PayloadTooLarge(f"Image exceeds {max_bytes} bytes")
    try:
        decoded = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInput("image_data is not valid base64") from exc
    if not decoded:
        raise InvalidInput("image_data must not be empty")
    if len(decoded) > max_bytes:
        raise PayloadTooLarge(f"Image exceeds {max_bytes} bytes")
    return decoded


def _max_encoded_length(max_bytes: int) -> int:
    return 4 * ((max_bytes + 2) // 3)


def _resolve_content_type(declared: str | None, image_bytes: bytes) -> str:
    content_type = (declared or _detect_mime_type(image_bytes)).strip().lower()
    if not content_type.startswith("image/"):
        raise InvalidInput(f"Unsupported content type: {content_type}")
    return content_type


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"


def _clean_caption(caption: str | None) -> str | None:
    if caption is None:
        return None
    cleaned = caption.strip()
    if not cleaned:
        return None
    if len(cleaned) > MAX_CAPTION_LENGTH:
        raise InvalidInput(f"caption must be at most {MAX_CAPTION_LENGTH} characters")
    return cleaned
