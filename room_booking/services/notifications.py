"""
Notification delivery.

Provides the notification sink used by booking transitions:
- DatabaseNotificationSink: stores notifications in the notifications table
- WebhookNotificationSink: POSTs signed JSON to an external endpoint
- FanOutNotificationSink: delivers to several sinks independently

Sinks raise on failure; the booking service logs and swallows those
errors so a notification problem never undoes a booking decision.
"""

import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from room_booking.config import Settings, get_settings
from room_booking.exceptions import NotificationDeliveryError, StorageError
from room_booking.models.notifications import Notification, NotificationKind

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_MESSAGE_LENGTH = 500


class NotificationSink(Protocol):
    """
    Fire-and-forget notification sink.

    Implementations:
    - DatabaseNotificationSink
    - WebhookNotificationSink
    - FanOutNotificationSink
    """

    def send(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        related_booking_id: Optional[UUID] = None,
        related_group_id: Optional[UUID] = None,
        sender_id: Optional[str] = None,
    ) -> None:
        """Deliver one notification."""
        ...


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


class DatabaseNotificationSink:
    """Stores notifications as rows, committing each one on its own."""

    def __init__(self, session: Session):
        self._session = session

    def send(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        related_booking_id: Optional[UUID] = None,
        related_group_id: Optional[UUID] = None,
        sender_id: Optional[str] = None,
    ) -> None:
        notification = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            kind=NotificationKind(kind).value,
            title=_truncate(title, MAX_TITLE_LENGTH),
            message=_truncate(message, MAX_MESSAGE_LENGTH),
            related_booking_id=related_booking_id,
            related_group_id=related_group_id,
        )
        try:
            self._session.add(notification)
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StorageError("Failed to store notification", original_error=e) from e

        logger.debug(f"Stored {notification.kind} notification for {recipient_id}")


def generate_signature(payload: str, secret: str) -> str:
    """
    Generate HMAC-SHA256 signature for a webhook payload.

    Args:
        payload: JSON string payload
        secret: Webhook secret

    Returns:
        Hex-encoded signature
    """
    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exception, NotificationDeliveryError):
        return exception.retryable
    return False


class WebhookNotificationSink:
    """
    Pushes notifications to an HTTP endpoint.

    Each request carries an X-Webhook-Signature header (HMAC-SHA256 of the
    body with the shared secret). Timeouts, 429 and 5xx responses are
    retried with exponential backoff. Without an injected client, each
    delivery opens and closes its own.
    """

    def __init__(
        self,
        url: str,
        secret: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self._url = url
        self._secret = secret
        self._timeout = timeout
        self._client = client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_retryable_error),
        reraise=True,
    )
    def send(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        related_booking_id: Optional[UUID] = None,
        related_group_id: Optional[UUID] = None,
        sender_id: Optional[str] = None,
    ) -> None:
        timestamp = datetime.now(timezone.utc).isoformat()
        payload_json = json.dumps(
            {
                "event_type": NotificationKind(kind).value,
                "timestamp": timestamp,
                "data": {
                    "recipient_id": recipient_id,
                    "sender_id": sender_id,
                    "title": title,
                    "message": message,
                    "related_booking_id": related_booking_id,
                    "related_group_id": related_group_id,
                },
            },
            default=str,
        )
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Signature": generate_signature(payload_json, self._secret),
            "X-Webhook-Event": NotificationKind(kind).value,
            "X-Webhook-Timestamp": timestamp,
        }

        if self._client is not None:
            response = self._post(self._client, payload_json, headers)
        else:
            with httpx.Client(timeout=self._timeout) as client:
                response = self._post(client, payload_json, headers)

        if response.status_code == 429 or response.status_code >= 500:
            raise NotificationDeliveryError(
                f"Webhook returned HTTP {response.status_code}", retryable=True
            )
        if response.status_code >= 400:
            raise NotificationDeliveryError(
                f"Webhook rejected notification: HTTP {response.status_code}: "
                f"{response.text[:200]}"
            )

        logger.info(f"Webhook notification delivered (status {response.status_code})")

    def _post(self, client: httpx.Client, payload_json: str, headers: dict) -> httpx.Response:
        try:
            return client.post(self._url, content=payload_json, headers=headers)
        except httpx.TimeoutException as e:
            raise NotificationDeliveryError(
                "Webhook request timed out", retryable=True, original_error=e
            ) from e
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(
                f"Webhook request failed: {e}", retryable=True, original_error=e
            ) from e


class FanOutNotificationSink:
    """Delivers each notification to every sink; one failure does not stop the rest."""

    def __init__(self, sinks: Sequence[NotificationSink]):
        self._sinks = list(sinks)

    def send(self, recipient_id: str, kind: NotificationKind, title: str, message: str, **kwargs) -> None:
        errors = []
        for sink in self._sinks:
            try:
                sink.send(recipient_id, kind, title, message, **kwargs)
            except Exception as e:
                logger.warning(f"{type(sink).__name__} failed to deliver notification: {e}")
                errors.append(e)

        if errors and len(errors) == len(self._sinks):
            raise NotificationDeliveryError(
                "All notification sinks failed", original_error=errors[0]
            )


def build_notification_sink(
    session: Session,
    settings: Optional[Settings] = None,
) -> NotificationSink:
    """
    Build the sink configured for this deployment.

    Always stores notifications in the database; adds the webhook when
    NOTIFICATION_WEBHOOK_URL is set.
    """
    settings = settings or get_settings()
    database_sink = DatabaseNotificationSink(session)

    if not settings.uses_notification_webhook:
        return database_sink

    webhook_sink = WebhookNotificationSink(
        url=settings.notification_webhook_url,
        secret=settings.notification_webhook_secret,
        timeout=settings.notification_webhook_timeout,
    )
    return FanOutNotificationSink([database_sink, webhook_sink])
