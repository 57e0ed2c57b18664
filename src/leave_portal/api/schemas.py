"""Request and response models for the HTTP API."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from leave_portal.domain.models import LeaveRequestRecord, LeaveStatus, PhotoRecord


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, mode="json")


class SubmitLeaveRequestBody(CamelModel):
    start_date: str
    end_date: str
    reason: str


class TransitionLeaveRequestBody(CamelModel):
    request_id: str
    new_status: str


class ListLeaveRequestsBody(CamelModel):
    user_id: str
    status: str | None = None
    limit: int | None = None


class GetLeaveRequestBody(CamelModel):
    request_id: str


class UploadPhotoBody(CamelModel):
    image_data: str
    caption: str | None = None
    content_type: str | None = None
    set_as_profile: bool = False


class ListPhotosBody(CamelModel):
    user_id: str


class OperationBody(CamelModel):
    arguments: dict[str, object] = Field(default_factory=dict)


class LeaveRequestOut(CamelModel):
    """Serialized leave request."""

    id: UUID
    user_id: str
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: LeaveRequestRecord) -> "LeaveRequestOut":
        return cls(
            id=record.id,
            user_id=record.user_id,
            start_date=record.start_date,
            end_date=record.end_date,
            reason=record.reason,
            status=record.status,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class PhotoOut(CamelModel):
    """Serialized photo metadata."""

    id: UUID
    user_id: str
    storage_key: str
    url: str
    caption: str | None
    content_type: str
    size_bytes: int
    created_at: datetime

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoOut":
        return cls(
            id=record.id,
            user_id=record.user_id,
            storage_key=record.storage_key,
            url=record.url,
            caption=record.caption,
            content_type=record.content_type,
            size_bytes=record.size_bytes,
            created_at=record.created_at,
        )
