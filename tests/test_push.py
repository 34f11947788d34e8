import json
from types import SimpleNamespace

import pytest
from pywebpush import WebPushException

from respawn.utils.messaging import push
from respawn.utils.messaging.push import PushDeliveryError, WebPushDispatcher, build_payload
from tests.conftest import SUBSCRIPTION


def test_build_payload_tags_by_sender():
    payload = build_payload("Return By Death!", "hi", {"sender_id": "u1"})
    assert payload["tag"] == "respawn-u1"
    assert payload["title"] == "Return By Death!"


async def test_dispatcher_requires_vapid_key():
    with pytest.raises(PushDeliveryError):
        await WebPushDispatcher(None).send(SUBSCRIPTION, "t", "b", {})


async def test_dispatcher_sends_signed_payload(monkeypatch):
    calls = []
    monkeypatch.setattr(push, "webpush", lambda **kwargs: calls.append(kwargs))

    await WebPushDispatcher("private-key", "mailto:ops@example.com").send(
        SUBSCRIPTION, "Return By Death!", "alice has called you back from death!", {"sender_id": "u1"}
    )

    assert calls[0]["subscription_info"] == SUBSCRIPTION
    assert calls[0]["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert json.loads(calls[0]["data"])["body"] == "alice has called you back from death!"


@pytest.mark.parametrize("status_code, stale", [(410, True), (404, True), (500, False)])
async def test_dispatcher_maps_push_service_errors(monkeypatch, status_code, stale):
    def failing(**kwargs):
        raise WebPushException("push rejected", response=SimpleNamespace(status_code=status_code))

    monkeypatch.setattr(push, "webpush", failing)

    with pytest.raises(PushDeliveryError) as excinfo:
        await WebPushDispatcher("private-key").send(SUBSCRIPTION, "t", "b", {})

    assert excinfo.value.stale is stale
    assert excinfo.value.status_code == status_code

