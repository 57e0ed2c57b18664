"""Operation dispatcher mapping logical operation names to handlers."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from leave_portal.api.schemas import (
    GetLeaveRequestBody,
    LeaveRequestOut,
    ListLeaveRequestsBody,
    ListPhotosBody,
    PhotoOut,
    SubmitLeaveRequestBody,
    TransitionLeaveRequestBody,
    UploadPhotoBody,
)
from leave_portal.domain.errors import InvalidInput, NotFound

if TYPE_CHECKING:
    from leave_portal.containers import AppContainer
    from leave_portal.domain.models import Identity

OperationHandler = Callable[["AppContainer", "Identity", dict[str, object]], object]
ModelT = TypeVar("ModelT", bound=BaseModel)


def submit_leave_request(
    container: AppContainer, identity: Identity, arguments: dict[str, object]
) -> dict[str, object]:
    body = _parse(SubmitLeaveRequestBody, arguments)
    record = container.leave_request_service.submit(
        identity, body.start_date, body.end_date, body.reason
    )
    return LeaveRequestOut.from_record(record).dump()


def transition_leave_request(
    container: AppContainer, identity: Identity, arguments: dict[str, object]
) -> dict[str, object]:
    body = _parse(TransitionLeaveRequestBody, arguments)
    record = container.leave_request_service.transition(
        identity, body.request_id, body.new_status
    )
    return LeaveRequestOut.from_record(record).dump()


def list_leave_requests(
    container: AppContainer, identity: Identity, arguments: dict[str, object]
) -> list[dict[str, object]]:
    body = _parse(ListLeaveRequestsBody, arguments)
    records = container.leave_request_service.list_for_owner(
        identity, body.user_id, status=body.status, limit=body.limit
    )
    return [LeaveRequestOut.from_record(record).dump() for record in records]


def get_leave_request(
    container: AppContainer, identity: Identity, arguments: dict[str, object]
) -> dict[str, object]:
    body = _parse(GetLeaveRequestBody, arguments)
    record = container.leave_request_service.get(identity, body.request_id)
    return LeaveRequestOut.from_record(record).dump()


def upload_photo(
    container: AppContainer, identity: Identity, arguments: dict[str, object]
) -> dict[str, object]:
    body = _parse(UploadPhotoBody, arguments)
    record = container.photo_service.upload(
        identity,
        body.image_data,
        caption=body.caption,
        content_type=body.content_type,
        set_as_profile=body.set_as_profile,
    )
    return PhotoOut.from_record(record).dump()


def list_photos(
    container: AppContainer, identity: Identity, arguments: dict[str, object]
) -> list[dict[str, object]]:
    body = _parse(ListPhotosBody, arguments)
    records = container.photo_service.list_for_owner(identity, body.user_id)
    return [PhotoOut.from_record(record).dump() for record in records]


OPERATIONS: dict[str, OperationHandler] = {
    "submitLeaveRequest": submit_leave_request,
    "transitionLeaveRequest": transition_leave_request,
    "listLeaveRequests": list_leave_requests,
    "getLeaveRequest": get_leave_request,
    "uploadPhoto": upload_photo,
    "listPhotos": list_photos,
}


def dispatch(
    container: AppContainer,
    identity: Identity,
    operation: str,
    arguments: dict[str, object],
) -> object:
    """Run the handler registered for an operation name."""
    handler = OPERATIONS.get(operation)
    if handler is None:
        raise NotFound(f"Unknown operation: {operation}")
    return handler(container, identity, arguments)


def _parse(model: type[ModelT], arguments: dict[str, object]) -> ModelT:
    try:
        return model.model_validate(arguments)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in exc.errors()
        )
        raise InvalidInput(f"Invalid arguments: {fields}") from exc
