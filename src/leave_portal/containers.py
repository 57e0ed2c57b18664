"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from leave_portal.adapters.supabase_blob_store import SupabaseBlobStore
from leave_portal.adapters.supabase_leave_request_repository import (
    SupabaseLeaveRequestRepository,
)
from leave_portal.adapters.supabase_photo_repository import SupabasePhotoRepository
from leave_portal.adapters.supabase_user_repository import SupabaseUserRepository
from leave_portal.adapters.webhook_notification_client import (
    HttpxWebhookNotificationClient,
)
from leave_portal.config import Settings, parse_roles
from leave_portal.services.leave_requests import LeaveRequestService
from leave_portal.services.notifications import NotificationDispatcher
from leave_portal.services.photos import PhotoService
from leave_portal.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    leave_request_service: LeaveRequestService
    photo_service: PhotoService
    notification_dispatcher: NotificationDispatcher
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    reviewer_roles = parse_roles(resolved_settings.reviewer_roles)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_repository = SupabaseUserRepository(supabase_client)
    leave_request_repository = SupabaseLeaveRequestRepository(supabase_client)
    photo_repository = SupabasePhotoRepository(supabase_client)
    blob_store = SupabaseBlobStore(supabase_client, resolved_settings.photo_bucket)
    notification_client = HttpxWebhookNotificationClient.create(
        resolved_settings.notification_webhook_url,
        token=resolved_settings.notification_webhook_token,
    )
    dispatcher = NotificationDispatcher(
        client=notification_client,
        user_repository=user_repository,
        reviewer_destination=resolved_settings.reviewer_destination,
        max_attempts=resolved_settings.notification_max_attempts,
        retry_delay_seconds=resolved_settings.notification_retry_delay_seconds,
        queue_size=resolved_settings.notification_queue_size,
    )
    user_service = UserService(user_repository)
    leave_request_service = LeaveRequestService(
        repository=leave_request_repository,
        notifier=dispatcher,
        reviewer_roles=reviewer_roles,
    )
    photo_service = PhotoService(
        photo_repository=photo_repository,
        blob_store=blob_store,
        user_repository=user_repository,
        max_bytes=resolved_settings.max_photo_bytes,
        reviewer_roles=reviewer_roles,
    )

    async def close_resources() -> None:
        await dispatcher.stop()
        await notification_client.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        leave_request_service=leave_request_service,
        photo_service=photo_service,
        notification_dispatcher=dispatcher,
        close_resources=close_resources,
    )
