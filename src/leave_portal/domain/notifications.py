"""Notification domain models."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class NotificationKind(StrEnum):
    """Events that produce a notification."""

    SUBMITTED = "leave_request.submitted"
    STATUS_CHANGED = "leave_request.status_changed"


@dataclass(frozen=True)
class NotificationJob:
    """Queued notification waiting for delivery."""

    kind: NotificationKind
    leave_request_id: UUID
    user_id: str
    payload: dict[str, str]


@dataclass(frozen=True)
class NotificationMessage:
    """Rendered message handed to a notification channel."""

    kind: NotificationKind
    destination: str
    subject: str
    body: str
    data: dict[str, str]
