"""Supabase-backed leave request repository."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from leave_portal.domain.models import LeaveRequestRecord, LeaveStatus
from leave_portal.services.leave_requests import LeaveRequestRepository

_COLUMNS = "id, user_id, start_date, end_date, reason, status, created_at, updated_at"


@dataclass
class SupabaseLeaveRequestRepository(LeaveRequestRepository):
    """Supabase implementation for leave request persistence."""

    client: Client

    def create_leave_request(self, record: LeaveRequestRecord) -> LeaveRequestRecord:
        """Insert a leave request row and return it."""
        response = (
            self.client.table("leave_requests")
            .insert(
                {
                    "id": str(record.id),
                    "user_id": record.user_id,
                    "start_date": record.start_date.isoformat(),
                    "end_date": record.end_date.isoformat(),
                    "reason": record.reason,
                    "status": str(record.status),
                    "created_at": record.created_at.isoformat(),
                    "updated_at": record.updated_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create leave request")
        return _parse_row(response.data[0])

    def get_leave_request(self, request_id: UUID) -> LeaveRequestRecord | None:
        """Return a leave request by id, if present."""
        response = (
            self.client.table("leave_requests")
            .select(_COLUMNS)
            .eq("id", str(request_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def update_status_if(
        self,
        request_id: UUID,
        expected: LeaveStatus,
        status: LeaveStatus,
        updated_at: datetime,
    ) -> LeaveRequestRecord | None:
        """Update status with a single conditional UPDATE ... WHERE status = ?."""
        response = (
            self.client.table("leave_requests")
            .update({"status": str(status), "updated_at": updated_at.isoformat()})
            .eq("id", str(request_id))
            .eq("status", str(expected))
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_by_user(
        self,
        user_id: str,
        status: LeaveStatus | None = None,
        limit: int | None = None,
    ) -> list[LeaveRequestRecord]:
        """Return a user's leave requests, newest first."""
        query = (
            self.client.table("leave_requests")
            .select(_COLUMNS)
            .eq("user_id", user_id)
        )
        if status is not None:
            query = query.eq("status", str(status))
        query = query.order("created_at", desc=True).order("id", desc=True)
        if limit is not None:
            query = query.limit(limit)
        response = query.execute()
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> LeaveRequestRecord:
    return LeaveRequestRecord(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(str(row["end_date"])),
        reason=str(row["reason"]),
        status=LeaveStatus(str(row["status"])),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(str(row["updated_at"])),
    )
