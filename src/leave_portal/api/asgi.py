"""ASGI entrypoint for the leave portal API."""

from leave_portal.api.app import create_app
from leave_portal.containers import build_container

app = create_app(build_container())
