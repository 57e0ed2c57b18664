"""Leave request workflow: submission, review transitions and listing."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol
from uuid import UUID, uuid4

from leave_portal.domain.errors import (
    Forbidden,
    InvalidInput,
    InvalidTransition,
    NotFound,
    Unauthenticated,
    storage_errors,
)
from leave_portal.domain.models import (
    ALLOWED_TRANSITIONS,
    REVIEWER_ROLE,
    Identity,
    LeaveRequestRecord,
    LeaveStatus,
    utc_now,
)

_logger = logging.getLogger(__name__)


class LeaveRequestRepository(Protocol):
    """Persistence interface for leave requests."""

    def create_leave_request(self, record: LeaveRequestRecord) -> LeaveRequestRecord:
        """Insert a new leave request row and return it as stored."""

    def get_leave_request(self, request_id: UUID) -> LeaveRequestRecord | None:
        """Return a leave request by id, if present."""

    def update_status_if(
        self,
        request_id: UUID,
        expected: LeaveStatus,
        status: LeaveStatus,
        updated_at: datetime,
    ) -> LeaveRequestRecord | None:
        """Set the status only if the stored status equals ``expected``.

        Returns the updated record, or ``None`` when no row matched.
        """

    def list_by_user(
        self,
        user_id: str,
        status: LeaveStatus | None = None,
        limit: int | None = None,
    ) -> list[LeaveRequestRecord]:
        """Return a user's leave requests, newest first."""


class LeaveNotifier(Protocol):
    """Receives leave request events for asynchronous notification."""

    def notify_submission(self, leave_request: LeaveRequestRecord) -> None:
        """Queue a notification for a new request."""

    def notify_transition(self, leave_request: LeaveRequestRecord) -> None:
        """Queue a notification for a status change."""


@dataclass
class LeaveRequestService:
    """Validates, persists and transitions leave requests."""

    repository: LeaveRequestRepository
    notifier: LeaveNotifier
    reviewer_roles: frozenset[str] = field(
        default_factory=lambda: frozenset({REVIEWER_ROLE})
    )
    clock: Callable[[], datetime] = utc_now

    def submit(
        self,
        identity: Identity,
        start_date: str | date,
        end_date: str | date,
        reason: str,
    ) -> LeaveRequestRecord:
        """Create a PENDING leave request owned by the caller."""
        user_id = _require_subject(identity)
        start = _parse_date(start_date, "start_date")
        end = _parse_date(end_date, "end_date")
        if start > end:
            raise InvalidInput("start_date must be on or before end_date")
        cleaned_reason = (reason or "").strip()
        if not cleaned_reason:
            raise InvalidInput("reason must not be empty")

        now = self.clock()
        record = LeaveRequestRecord(
            id=uuid4(),
            user_id=user_id,
            start_date=start,
            end_date=end,
            reason=cleaned_reason,
            status=LeaveStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        with storage_errors("leave request write"):
            created = self.repository.create_leave_request(record)
        _logger.info("Leave request %s submitted by %s", created.id, user_id)
        self._notify(self.notifier.notify_submission, created)
        return created

    def transition(
        self,
        identity: Identity,
        request_id: UUID | str,
        new_status: LeaveStatus | str,
    ) -> LeaveRequestRecord:
        """Move a PENDING request to APPROVED or REJECTED."""
        self._require_reviewer(identity)
        target = _parse_target_status(new_status)
        request_uuid = _parse_request_id(request_id)

        with storage_errors("leave request lookup"):
            current = self.repository.get_leave_request(request_uuid)
        if current is None:
            raise NotFound(f"Leave request {request_id} not found")
        if current.status == target:
            return current
        if target not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransition(
                f"Cannot move leave request from {current.status} to {target}"
            )

        updated_at = max(self.clock(), current.updated_at)
        with storage_errors("leave request update"):
            updated = self.repository.update_status_if(
                request_uuid, current.status, target, updated_at
            )
        if updated is None:
            return self._resolve_lost_race(request_uuid, target)

        _logger.info(
            "Leave request %s moved %s -> %s by %s",
            updated.id,
            current.status,
            target,
            identity.subject_id,
        )
        self._notify(self.notifier.notify_transition, updated)
        return updated

    def list_for_owner(
        self,
        identity: Identity,
        user_id: str,
        status: LeaveStatus | str | None = None,
        limit: int | None = None,
    ) -> list[LeaveRequestRecord]:
        """Return a user's requests, most recent first."""
        self._require_owner_or_reviewer(identity, user_id)
        status_filter = _parse_status(status) if status is not None else None
        if limit is not None and limit < 1:
            raise InvalidInput("limit must be at least 1")
        with storage_errors("leave request listing"):
            records = self.repository.list_by_user(user_id, status_filter, limit)
        ordered = sorted(records, key=_newest_first_key, reverse=True)
        return ordered[:limit] if limit is not None else ordered

    def get(self, identity: Identity, request_id: UUID | str) -> LeaveRequestRecord:
        """Return a single request visible to the caller."""
        _require_subject(identity)
        request_uuid = _parse_request_id(request_id)
        with storage_errors("leave request lookup"):
            record = self.repository.get_leave_request(request_uuid)
        if record is None:
            raise NotFound(f"Leave request {request_id} not found")
        self._require_owner_or_reviewer(identity, record.user_id)
        return record

    def is_reviewer(self, identity: Identity) -> bool:
        return any(identity.has_role(role) for role in self.reviewer_roles)

    def _require_reviewer(self, identity: Identity) -> None:
        _require_subject(identity)
        if not self.is_reviewer(identity):
            raise Forbidden("Reviewer role required")

    def _require_owner_or_reviewer(self, identity: Identity, user_id: str) -> None:
        subject = _require_subject(identity)
        if subject != user_id and not self.is_reviewer(identity):
            raise Forbidden("Cannot access another user's leave requests")

    def _resolve_lost_race(
        self, request_id: UUID, target: LeaveStatus
    ) -> LeaveRequestRecord:
        with storage_errors("leave request lookup"):
            latest = self.repository.get_leave_request(request_id)
        if latest is None:
            raise NotFound(f"Leave request {request_id} not found")
        if latest.status == target:
            return latest
        _logger.info(
            "Leave request %s already resolved as %s, rejecting %s",
            request_id,
            latest.status,
            target,
        )
        raise InvalidTransition(
            f"Leave request {request_id} is already {latest.status}"
        )

    @staticmethod
    def _notify(
        notify: Callable[[LeaveRequestRecord], None], record: LeaveRequestRecord
    ) -> None:
        try:
            notify(record)
        except Exception:  # noqa: BLE001
            _logger.warning(
                "Failed to queue notification for leave request %s",
                record.id,
                exc_info=True,
            )


def _require_subject(identity: Identity) -> str:
    if not identity.is_authenticated:
        raise Unauthenticated("Caller identity is required")
    return str(identity.subject_id)


def _newest_first_key(record: LeaveRequestRecord) -> tuple[datetime, str]:
    return record.created_at, str(record.id)


def _parse_date(value: str | date, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be an ISO date")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidInput(f"{field_name} must be an ISO date") from exc


def _parse_status(value: LeaveStatus | str) -> LeaveStatus:
    try:
        return LeaveStatus(str(value).upper())
    except ValueError as exc:
        raise InvalidInput(f"Unknown status: {value}") from exc


def _parse_target_status(value: LeaveStatus | str) -> LeaveStatus:
    status = _parse_status(value)
    if status is LeaveStatus.PENDING:
        raise InvalidInput("new_status must be APPROVED or REJECTED")
    return status


def _parse_request_id(value: UUID | str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise NotFound(f"Leave request {value} not found") from exc
