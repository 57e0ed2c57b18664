"""Caller identity extracted from trusted gateway headers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Header, Request

from leave_portal.config import parse_roles
from leave_portal.domain.models import Identity

if TYPE_CHECKING:
    from leave_portal.containers import AppContainer


async def current_identity(
    request: Request,
    x_user_id: str | None = Header(default=None),
    x_user_roles: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
) -> Identity:
    """Build the caller identity and make sure a profile exists for it.

    The headers are set by the upstream identity provider after token
    verification; this service never authenticates on its own.
    """
    subject_id = (x_user_id or "").strip() or None
    identity = Identity(
        subject_id=subject_id,
        roles=parse_roles(x_user_roles),
        email=(x_user_email or "").strip() or None,
        name=(x_user_name or "").strip() or None,
    )
    if identity.is_authenticated:
        container: AppContainer = request.app.state.container
        container.user_service.ensure_user(identity)
    return identity
