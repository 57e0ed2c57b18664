"""Domain models for the leave portal."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from uuid import UUID

REVIEWER_ROLE = "reviewer"


@dataclass(frozen=True)
class Identity:
    """Pre-validated caller identity supplied by the identity provider."""

    subject_id: str | None
    roles: frozenset[str] = field(default_factory=frozenset)
    email: str | None = None
    name: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.subject_id)

    def has_role(self, role: str) -> bool:
        return role in self.roles


@dataclass(frozen=True)
class UserRecord:
    """Represents a user profile stored in the database."""

    id: str
    email: str | None
    name: str | None
    profile_picture_ref: str | None = None


class LeaveStatus(StrEnum):
    """Lifecycle states of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED})

ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED}),
    LeaveStatus.APPROVED: frozenset(),
    LeaveStatus.REJECTED: frozenset(),
}


@dataclass(frozen=True)
class LeaveRequestRecord:
    """Persisted time-off request."""

    id: UUID
    user_id: str
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PhotoRecord:
    """Persisted photo metadata referencing a stored blob."""

    id: UUID
    user_id: str
    storage_key: str
    url: str
    caption: str | None
    content_type: str
    size_bytes: int
    created_at: datetime


def utc_now() -> datetime:
    return datetime.now(tz=UTC)
