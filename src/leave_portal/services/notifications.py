"""Best-effort notification dispatch decoupled from the write path."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Protocol

from leave_portal.domain.models import LeaveRequestRecord, UserRecord
from leave_portal.domain.notifications import (
    NotificationJob,
    NotificationKind,
    NotificationMessage,
)
from leave_portal.services.users import UserRepository

_logger = logging.getLogger(__name__)


class NotificationClient(Protocol):
    """Interface for a notification channel."""

    async def send(self, message: NotificationMessage) -> None:
        """Deliver a single message or raise NotificationFailure."""


@dataclass
class NotificationDispatcher:
    """Queues notification jobs and delivers them from a background worker.

    Request handlers only ever enqueue. Delivery happens in ``_run`` (started
    by the application lifespan) or inline via ``deliver_pending``. Failures
    are logged and dropped; nothing raised here reaches the triggering call.
    """

    client: NotificationClient
    user_repository: UserRepository
    reviewer_destination: str
    max_attempts: int = 1
    retry_delay_seconds: float = 0.5
    queue_size: int = 100
    _queue: "asyncio.Queue[NotificationJob]" = field(init=False, repr=False)
    _worker: "asyncio.Task[None] | None" = field(
        init=False, default=None, repr=False
    )

    def __post_init__(self) -> None:
        self._queue = asyncio.Queue(maxsize=self.queue_size)

    @property
    def pending(self) -> int:
        """Number of jobs waiting for delivery."""
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def notify_submission(self, leave_request: LeaveRequestRecord) -> None:
        """Queue the reviewer notification for a new leave request."""
        self._enqueue(
            NotificationJob(
                kind=NotificationKind.SUBMITTED,
                leave_request_id=leave_request.id,
                user_id=leave_request.user_id,
                payload={
                    "start_date": leave_request.start_date.isoformat(),
                    "end_date": leave_request.end_date.isoformat(),
                    "reason": leave_request.reason,
                },
            )
        )

    def notify_transition(self, leave_request: LeaveRequestRecord) -> None:
        """Queue the owner notification for a status change."""
        self._enqueue(
            NotificationJob(
                kind=NotificationKind.STATUS_CHANGED,
                leave_request_id=leave_request.id,
                user_id=leave_request.user_id,
                payload={
                    "start_date": leave_request.start_date.isoformat(),
                    "end_date": leave_request.end_date.isoformat(),
                    "status": str(leave_request.status),
                },
            )
        )

    def start(self) -> None:
        """Start the background worker on the running event loop."""
        if self.running:
            return
        self._worker = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Deliver queued jobs, then stop the worker."""
        if self.running:
            await self._queue.join()
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker
        await self.deliver_pending()

    async def deliver_pending(self) -> int:
        """Deliver every queued job inline and return how many were sent."""
        delivered = 0
        while not self._queue.empty():
            job = self._queue.get_nowait()
            if await self._process(job):
                delivered += 1
        return delivered

    def _enqueue(self, job: NotificationJob) -> None:
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            _logger.warning(
                "Notification queue full, dropping %s for leave request %s",
                job.kind,
                job.leave_request_id,
            )

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            await self._process(job)

    async def _process(self, job: NotificationJob) -> bool:
        try:
            return await self._deliver(job)
        except Exception:
            _logger.exception(
                "Notification %s for leave request %s could not be processed",
                job.kind,
                job.leave_request_id,
            )
            return False
        finally:
            self._queue.task_done()

    async def _deliver(self, job: NotificationJob) -> bool:
        owner = self._lookup_owner(job.user_id)
        message = self._render(job, owner)
        if message is None:
            _logger.warning(
                "No destination for %s on leave request %s",
                job.kind,
                job.leave_request_id,
            )
            return False

        attempt = 0
        while True:
            try:
                await self.client.send(message)
            except Exception as exc:  # noqa: BLE001
                attempt += 1
                if attempt >= self.max_attempts:
                    _logger.warning(
                        "Notification %s for leave request %s failed after %s "
                        "attempt(s): %s",
                        job.kind,
                        job.leave_request_id,
                        attempt,
                        exc,
                    )
                    return False
                await asyncio.sleep(self.retry_delay_seconds)
            else:
                _logger.info(
                    "Notification %s sent for leave request %s",
                    job.kind,
                    job.leave_request_id,
                )
                return True

    def _lookup_owner(self, user_id: str) -> UserRecord | None:
        try:
            return self.user_repository.get_user(user_id)
        except Exception:  # noqa: BLE001
            _logger.warning("Owner lookup failed for user %s", user_id, exc_info=True)
            return None

    def _render(
        self, job: NotificationJob, owner: UserRecord | None
    ) -> NotificationMessage | None:
        if job.kind is NotificationKind.SUBMITTED:
            return _render_submission(job, owner, self.reviewer_destination)
        if owner is None or not owner.email:
            return None
        return _render_status_change(job, owner, owner.email)


def _render_submission(
    job: NotificationJob, owner: UserRecord | None, destination: str
) -> NotificationMessage:
    owner_label = _owner_label(owner, job.user_id)
    start_date = job.payload["start_date"]
    end_date = job.payload["end_date"]
    reason = job.payload["reason"]
    body = "\n".join(
        [
            "A new leave request is waiting for review.",
            f"Employee: {owner_label}",
            f"From: {start_date}",
            f"To: {end_date}",
            f"Reason: {reason}",
        ]
    )
    return NotificationMessage(
        kind=job.kind,
        destination=destination,
        subject=f"Leave request from {_display_name(owner, job.user_id)}",
        body=body,
        data={
            "leave_request_id": str(job.leave_request_id),
            "owner": owner_label,
            "start_date": start_date,
            "end_date": end_date,
            "reason": reason,
        },
    )


def _render_status_change(
    job: NotificationJob, owner: UserRecord, destination: str
) -> NotificationMessage:
    name = _display_name(owner, job.user_id)
    status = job.payload["status"]
    start_date = job.payload["start_date"]
    end_date = job.payload["end_date"]
    return NotificationMessage(
        kind=job.kind,
        destination=destination,
        subject=f"Your leave request was {status.lower()}",
        body=(
            f"Hi {name}, your leave from {start_date} to {end_date} is now "
            f"{status}."
        ),
        data={
            "leave_request_id": str(job.leave_request_id),
            "status": status,
            "start_date": start_date,
            "end_date": end_date,
        },
    )


def _display_name(owner: UserRecord | None, user_id: str) -> str:
    if owner is None:
        return user_id
    return owner.name or owner.email or user_id


def _owner_label(owner: UserRecord | None, user_id: str) -> str:
    if owner is None or not owner.email:
        return _display_name(owner, user_id)
    return f"{_display_name(owner, user_id)} <{owner.email}>"
