"""
Unit tests for notification sinks.

Tests database storage, signed webhook delivery with retries, and fan-out.
"""

import hashlib
import hmac
import json
import time
import uuid
from unittest.mock import MagicMock

import httpx
import pytest

from room_booking.config import Settings
from room_booking.exceptions import NotificationDeliveryError
from room_booking.models.notifications import Notification, NotificationKind
from room_booking.services.notifications import (
    DatabaseNotificationSink,
    FanOutNotificationSink,
    WebhookNotificationSink,
    build_notification_sink,
    generate_signature,
)


WEBHOOK_URL = "https://hooks.example.com/bookings"


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip retry backoff delays."""
    monkeypatch.setattr(time, "sleep", lambda seconds: None)


def webhook_sink(handler) -> WebhookNotificationSink:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return WebhookNotificationSink(WEBHOOK_URL, "s3cret", client=client)


class TestDatabaseNotificationSink:
    """Test DatabaseNotificationSink."""

    def test_stores_notification(self, db_session):
        booking_id = uuid.uuid4()
        sink = DatabaseNotificationSink(db_session)

        sink.send(
            "teacher1",
            NotificationKind.BOOKING_APPROVED,
            "Booking Approved",
            "Your booking has been approved",
            related_booking_id=booking_id,
            sender_id="admin",
        )

        stored = db_session.query(Notification).one()
        assert stored.recipient_id == "teacher1"
        assert stored.sender_id == "admin"
        assert stored.kind == "booking_approved"
        assert stored.related_booking_id == booking_id
        assert stored.is_read is False

    def test_truncates_long_message(self, db_session):
        DatabaseNotificationSink(db_session).send(
            "teacher1", NotificationKind.SYSTEM, "Notice", "x" * 800
        )

        stored = db_session.query(Notification).one()
        assert len(stored.message) == 500
        assert stored.message.endswith("...")


class TestGenerateSignature:
    """Test HMAC signing."""

    def test_matches_hmac_sha256(self):
        payload = '{"event_type": "booking_approved"}'

        expected = hmac.new(b"secret", payload.encode(), hashlib.sha256).hexdigest()

        assert generate_signature(payload, "secret") == expected

    def test_different_secrets_differ(self):
        assert generate_signature("body", "a") != generate_signature("body", "b")


class TestWebhookNotificationSink:
    """Test WebhookNotificationSink delivery and retry policy."""

    def test_delivers_signed_payload(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        group_id = uuid.uuid4()
        webhook_sink(handler).send(
            "teacher1",
            NotificationKind.BOOKING_REJECTED,
            "Booking Rejected",
            "Your booking has been rejected",
            related_group_id=group_id,
        )

        assert len(requests) == 1
        request = requests[0]
        body = request.content.decode()
        assert request.headers["X-Webhook-Signature"] == generate_signature(body, "s3cret")
        assert request.headers["X-Webhook-Event"] == "booking_rejected"
        payload = json.loads(body)
        assert payload["event_type"] == "booking_rejected"
        assert payload["data"]["recipient_id"] == "teacher1"
        assert payload["data"]["related_group_id"] == str(group_id)

    def test_closes_its_own_client_after_each_delivery(self, monkeypatch):
        clients = []
        real_client = httpx.Client

        def tracking_client(**kwargs):
            client = real_client(transport=httpx.MockTransport(lambda request: httpx.Response(200)), **kwargs)
            clients.append(client)
            return client

        monkeypatch.setattr(httpx, "Client", tracking_client)
        sink = WebhookNotificationSink(WEBHOOK_URL, "s3cret", timeout=5.0)

        sink.send("teacher1", NotificationKind.SYSTEM, "t", "m")
        sink.send("teacher1", NotificationKind.SYSTEM, "t", "m")

        assert len(clients) == 2
        assert all(client.is_closed for client in clients)

    def test_client_error_is_not_retried(self, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, text="bad payload")

        with pytest.raises(NotificationDeliveryError) as exc_info:
            webhook_sink(handler).send("teacher1", NotificationKind.SYSTEM, "t", "m")

        assert exc_info.value.retryable is False
        assert len(calls) == 1

    def test_server_error_is_retried(self, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        with pytest.raises(NotificationDeliveryError) as exc_info:
            webhook_sink(handler).send("teacher1", NotificationKind.SYSTEM, "t", "m")

        assert exc_info.value.retryable is True
        assert len(calls) == 3

    def test_recovers_after_transient_failure(self, no_sleep):
        responses = iter([httpx.Response(429), httpx.Response(200)])

        def handler(request):
            return next(responses)

        webhook_sink(handler).send("teacher1", NotificationKind.SYSTEM, "t", "m")

    def test_timeout_is_retryable(self, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NotificationDeliveryError, match="timed out"):
            webhook_sink(handler).send("teacher1", NotificationKind.SYSTEM, "t", "m")

        assert len(calls) == 3


class TestFanOutNotificationSink:
    """Test FanOutNotificationSink."""

    def test_one_failure_does_not_stop_others(self):
        failing = MagicMock()
        failing.send.side_effect = NotificationDeliveryError("down")
        working = MagicMock()

        FanOutNotificationSink([failing, working]).send(
            "teacher1", NotificationKind.SYSTEM, "t", "m", sender_id="admin"
        )

        working.send.assert_called_once_with(
            "teacher1", NotificationKind.SYSTEM, "t", "m", sender_id="admin"
        )

    def test_all_failures_raise(self):
        failing = MagicMock()
        failing.send.side_effect = NotificationDeliveryError("down")

        with pytest.raises(NotificationDeliveryError, match="All notification sinks failed"):
            FanOutNotificationSink([failing, failing]).send("teacher1", NotificationKind.SYSTEM, "t", "m")


class TestBuildNotificationSink:
    """Test build_notification_sink()."""

    def test_database_only_by_default(self, db_session):
        sink = build_notification_sink(db_session, Settings(_env_file=None, notification_webhook_url=""))

        assert isinstance(sink, DatabaseNotificationSink)

    def test_adds_webhook_when_configured(self, db_session):
        settings = Settings(
            _env_file=None,
            notification_webhook_url=WEBHOOK_URL,
            notification_webhook_secret="s3cret",
        )

        sink = build_notification_sink(db_session, settings)

        assert isinstance(sink, FanOutNotificationSink)
