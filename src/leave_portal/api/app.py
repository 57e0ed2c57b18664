"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from leave_portal.api.identity import current_identity
from leave_portal.api.operations import dispatch
from leave_portal.api.schemas import (
    OperationBody,
    SubmitLeaveRequestBody,
    UploadPhotoBody,
)
from leave_portal.app_logging import configure_logging
from leave_portal.containers import AppContainer
from leave_portal.domain.errors import (
    Forbidden,
    InvalidInput,
    InvalidTransition,
    NotFound,
    PayloadTooLarge,
    PortalError,
    StorageFailure,
    Unauthenticated,
)
from leave_portal.domain.models import Identity

_ERROR_STATUS: dict[type[PortalError], int] = {
    Unauthenticated: 401,
    Forbidden: 403,
    NotFound: 404,
    InvalidTransition: 409,
    PayloadTooLarge: 413,
    InvalidInput: 422,
    StorageFailure: 503,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.notification_dispatcher.start()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(PortalError)
    async def portal_error_handler(
        request: Request, exc: PortalError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(
                "%s %s failed: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc.__cause__ or exc,
            )
        headers = {"Retry-After": "1"} if isinstance(exc, StorageFailure) else None
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
            headers=headers,
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/leave-requests", status_code=201)
    async def submit_leave_request(
        body: SubmitLeaveRequestBody,
        request: Request,
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """Submit a leave request for the caller."""
        return dispatch(
            request.app.state.container, identity, "submitLeaveRequest", body.dump()
        )

    @app.get("/leave-requests/{request_id}")
    async def get_leave_request(
        request_id: str,
        request: Request,
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """Return one leave request."""
        return dispatch(
            request.app.state.container,
            identity,
            "getLeaveRequest",
            {"requestId": request_id},
        )

    @app.post("/leave-requests/{request_id}/transition")
    async def transition_leave_request(
        request_id: str,
        request: Request,
        payload: dict[str, object],
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """Approve or reject a pending leave request."""
        return dispatch(
            request.app.state.container,
            identity,
            "transitionLeaveRequest",
            {**payload, "requestId": request_id},
        )

    @app.get("/users/{user_id}/leave-requests")
    async def list_leave_requests(
        user_id: str,
        request: Request,
        status: str | None = None,
        limit: int | None = None,
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """List a user's leave requests, newest first."""
        arguments: dict[str, object] = {"userId": user_id}
        if status is not None:
            arguments["status"] = status
        if limit is not None:
            arguments["limit"] = limit
        items = dispatch(
            request.app.state.container, identity, "listLeaveRequests", arguments
        )
        return {"items": items}

    @app.post("/photos", status_code=201)
    async def upload_photo(
        body: UploadPhotoBody,
        request: Request,
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """Upload a base64 encoded photo."""
        return dispatch(
            request.app.state.container, identity, "uploadPhoto", body.dump()
        )

    @app.get("/users/{user_id}/photos")
    async def list_photos(
        user_id: str,
        request: Request,
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """List a user's photos, newest first."""
        items = dispatch(
            request.app.state.container, identity, "listPhotos", {"userId": user_id}
        )
        return {"items": items}

    @app.post("/operations/{operation}")
    async def run_operation(
        operation: str,
        body: OperationBody,
        request: Request,
        identity: Identity = Depends(current_identity),
    ) -> dict[str, object]:
        """Dispatch a logical operation by name."""
        result = dispatch(
            request.app.state.container, identity, operation, body.arguments
        )
        return {"operation": operation, "data": result}

    return app


def _status_for(exc: PortalError) -> int:
    for error_type, status_code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 500
