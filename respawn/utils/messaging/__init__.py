"""Messaging utilities (push notifications)."""

from .push import PushDeliveryError, PushDispatcher, WebPushDispatcher, build_payload

__all__ = [
    "PushDeliveryError",
    "PushDispatcher",
    "WebPushDispatcher",
    "build_payload",
]
