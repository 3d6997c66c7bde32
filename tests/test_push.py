"""Push subscriptions and web push delivery."""

from unittest.mock import Mock

import pytest
from pywebpush import WebPushException

from app.config.settings import settings
from app.modules.notifications.schemas import NotificationPayload
from app.modules.notifications.service import PushService, reset_vapid_config

SUBSCRIPTION = {
    "endpoint": "https://push.example.com/abc",
    "keys": {"p256dh": "key-1", "auth": "auth-1"},
}


@pytest.fixture
def vapid(monkeypatch):
    monkeypatch.setattr(settings, "vapid_public_key", "public")
    monkeypatch.setattr(settings, "vapid_private_key", "private")
    reset_vapid_config()
    yield
    reset_vapid_config()


def test_subscribe_creates_then_updates(client, auth_headers, db):
    """Test re-subscribing the same endpoint keeps one row and refreshes its keys."""
    first = client.post("/api/v1/push/subscribe", headers=auth_headers, json={"subscription": SUBSCRIPTION})
    assert first.status_code == 200
    assert first.json()["message"] == "Subscription created"

    renewed = {**SUBSCRIPTION, "keys": {"p256dh": "key-2", "auth": "auth-2"}}
    second = client.post("/api/v1/push/subscribe", headers=auth_headers, json={"subscription": renewed})

    assert second.json() == {"message": "Subscription updated", "subscriptionId": first.json()["subscriptionId"]}
    rows = db.rows("push_subscriptions")
    assert len(rows) == 1
    assert rows[0]["keys"] == {"p256dh": "key-2", "auth": "auth-2"}
    assert rows[0]["user_id"] == auth_headers.user_id


@pytest.mark.parametrize("body", [
    {},
    {"subscription": {"endpoint": "https://push.example.com/abc"}},
    {"subscription": {"keys": {"p256dh": "k", "auth": "a"}}},
])
def test_subscribe_rejects_incomplete_data(client, auth_headers, body):
    response = client.post("/api/v1/push/subscribe", headers=auth_headers, json=body)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid subscription data"


def test_unsubscribe(client, auth_headers, db):
    db.seed("push_subscriptions", {"user_id": auth_headers.user_id, **SUBSCRIPTION})

    response = client.request(
        "DELETE", "/api/v1/push/subscribe", headers=auth_headers, json={"endpoint": SUBSCRIPTION["endpoint"]}
    )

    assert response.json() == {"message": "Subscription deleted"}
    assert db.rows("push_subscriptions") == []


def test_unsubscribe_requires_endpoint(client, auth_headers):
    response = client.request("DELETE", "/api/v1/push/subscribe", headers=auth_headers, json={})
    assert response.status_code == 400


def test_send_without_vapid_is_noop(db, monkeypatch):
    monkeypatch.setattr(settings, "vapid_private_key", None)
    reset_vapid_config()
    db.seed("push_subscriptions", {"user_id": "u1", **SUBSCRIPTION})

    result = PushService(db).send_push_notification("u1", NotificationPayload(title="t", body="b"), "test")

    assert result.success == 0 and result.failed == 0
    assert db.rows("notification_logs") == []


def test_send_delivers_and_logs(db, vapid, monkeypatch):
    sent = []
    monkeypatch.setattr("app.modules.notifications.service.webpush", lambda **kwargs: sent.append(kwargs))
    db.seed("push_subscriptions", {"user_id": "u1", **SUBSCRIPTION})

    result = PushService(db).send_push_notification(
        "u1", NotificationPayload(title="Salut", body="Nouveau défi", data={"url": "/challenges"}), "challenge"
    )

    assert result.success == 1
    assert sent[0]["subscription_info"]["endpoint"] == SUBSCRIPTION["endpoint"]
    assert '"tag": "challenge"' in sent[0]["data"]
    assert sent[0]["vapid_claims"] == {"sub": settings.vapid_subject}
    log = db.rows("notification_logs")[0]
    assert log["type"] == "challenge"
    assert log["success"] is True


def test_gone_subscription_is_removed(db, vapid, monkeypatch):
    """Test an endpoint answering 410 is deleted and never tried again."""
    calls = []

    def gone(**kwargs):
        calls.append(kwargs["subscription_info"]["endpoint"])
        raise WebPushException("gone", response=Mock(status_code=410))

    monkeypatch.setattr("app.modules.notifications.service.webpush", gone)
    db.seed("push_subscriptions", {"user_id": "u1", **SUBSCRIPTION})
    service = PushService(db)

    result = service.send_push_notification("u1", NotificationPayload(title="t", body="b"), "test")
    again = service.send_push_notification("u1", NotificationPayload(title="t", body="b"), "test")

    assert result.failed == 1
    assert db.rows("push_subscriptions") == []
    assert db.rows("notification_logs")[0]["success"] is False
    assert calls == [SUBSCRIPTION["endpoint"]]
    assert (again.success, again.failed) == (0, 0)


def test_other_failures_keep_subscription(db, vapid, monkeypatch):
    def unavailable(**kwargs):
        raise WebPushException("unavailable", response=Mock(status_code=503))

    monkeypatch.setattr("app.modules.notifications.service.webpush", unavailable)
    db.seed("push_subscriptions", {"user_id": "u1", **SUBSCRIPTION})

    PushService(db).send_push_notification("u1", NotificationPayload(title="t", body="b"), "test")

    assert len(db.rows("push_subscriptions")) == 1


def test_send_to_many_sums_results(db, vapid, monkeypatch):
    monkeypatch.setattr("app.modules.notifications.service.webpush", lambda **kwargs: None)
    db.seed("push_subscriptions", {"user_id": "u1", **SUBSCRIPTION})
    db.seed("push_subscriptions", {"user_id": "u2", "endpoint": "https://push.example.com/def", "keys": {}})
    payload = NotificationPayload(title="t", body="b")

    result = PushService(db).send_to_many([
        {"user_id": "u1", "payload": payload, "type": "test"},
        {"user_id": "u2", "payload": payload, "type": "test"},
        {"user_id": "u3", "payload": payload, "type": "test"},
    ])

    assert result.success == 2
    assert result.failed == 0


def test_vapid_public_key(client, vapid):
    assert client.get("/api/v1/push/vapid-public-key").json() == {"publicKey": "public"}
