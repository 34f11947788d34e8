import asyncio
import json
import logging
from typing import Any, Protocol

from pywebpush import webpush, WebPushException

log = logging.getLogger(__name__)

# Push service answers for subscriptions that no longer exist
STALE_SUBSCRIPTION_STATUSES = (404, 410)


class PushDeliveryError(Exception):

    def __init__(self, message: str, *, stale: bool = False, status_code: int | None = None):
        super().__init__(message)
        self.stale = stale
        self.status_code = status_code


class PushDispatcher(Protocol):
    async def send(
        self,
        subscription: dict,
        title: str,
        body: str,
        data: dict[str, Any],
    ) -> None:
        ...


def build_payload(title: str, body: str, data: dict[str, Any]) -> dict[str, Any]:
    payload = {
        "title": title,
        "body": body,
        "data": data,
    }
    sender_id = data.get("sender_id")
    payload["tag"] = f"respawn-{sender_id}" if sender_id else "respawn"
    return payload


class WebPushDispatcher:
    """Web Push delivery signed with the service's VAPID key."""

    def __init__(self, vapid_private_key: str | None, vapid_email: str | None = None):
        self.vapid_private_key = vapid_private_key
        self.vapid_email = vapid_email or "mailto:admin@example.com"

    async def send(
        self,
        subscription: dict,
        title: str,
        body: str,
        data: dict[str, Any],
    ) -> None:
        if not self.vapid_private_key:
            raise PushDeliveryError("VAPID private key is not configured")

        payload = build_payload(title, body, data)
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription,
                data=json.dumps(payload),
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_email},
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            raise PushDeliveryError(
                f"Web push failed: {e}",
                stale=status_code in STALE_SUBSCRIPTION_STATUSES,
                status_code=status_code,
            ) from e

        log.info("[push] Notification sent: %s", title)
