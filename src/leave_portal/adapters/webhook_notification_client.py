"""Webhook notification channel using httpx."""

from dataclasses import dataclass

import httpx

from leave_portal.domain.errors import NotificationFailure
from leave_portal.domain.notifications import NotificationMessage
from leave_portal.services.notifications import NotificationClient


@dataclass
class HttpxWebhookNotificationClient(NotificationClient):
    """Posts notification messages as JSON to a webhook endpoint."""

    webhook_url: str
    http_client: httpx.AsyncClient
    token: str | None = None
    timeout_seconds: float = 10

    @classmethod
    def create(
        cls, webhook_url: str, token: str | None = None
    ) -> "HttpxWebhookNotificationClient":
        """Create a webhook client with a managed httpx session."""
        return cls(
            webhook_url=webhook_url, http_client=httpx.AsyncClient(), token=token
        )

    async def send(self, message: NotificationMessage) -> None:
        """Deliver a message, raising NotificationFailure on any error."""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        payload: dict[str, object] = {
            "event": str(message.kind),
            "to": message.destination,
            "subject": message.subject,
            "text": message.body,
            "data": message.data,
        }
        try:
            response = await self.http_client.post(
                self.webhook_url,
                json=payload,
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationFailure(f"Webhook delivery failed: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
