"""
Integration event publisher.

Forwards domain events to an external webhook so other services can
react to them. Implements HMAC-SHA256 signature generation for webhook
security.
"""
import hashlib
import hmac
import json
import logging
import uuid
from datetime import datetime, timezone

import httpx

from account_events.domain.events import DomainEvent


logger = logging.getLogger(__name__)


class IntegrationPublishError(Exception):
    """Raised when an integration event could not be delivered"""
    pass


class IntegrationEventPublisher:
    """
    Service for publishing integration events to a webhook.

    Responsibilities:
    - Wrap a domain event in an integration envelope
    - Generate HMAC-SHA256 signature for webhook security
    - Send POST request to the configured URL
    - Raise on any delivery failure (no retries - the commit fails instead)

    Usage:
        publisher = IntegrationEventPublisher(http_client, url, secret)
        await publisher.publish(event)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        webhook_url: str,
        webhook_secret: str,
        timeout: float = 10.0
    ):
        """
        Initialize integration publisher.

        Args:
            http_client: Async HTTP client for making webhook requests
            webhook_url: Where integration events are POSTed
            webhook_secret: Shared secret for signature generation
            timeout: Request timeout in seconds
        """
        self.http_client = http_client
        self.webhook_url = webhook_url
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event as an integration event.

        Raises:
            IntegrationPublishError: On timeout, transport error or non-2xx response
        """
        payload = self._build_payload(event)
        payload_json = json.dumps(payload)
        signature_header = self._generate_signature(payload_json, self.webhook_secret)

        # Never log payload contents - they carry personal data
        logger.info(
            f"📤 Publishing integration event - "
            f"event_id: {payload['event_id']}, type: {payload['event_type']}"
        )

        try:
            response = await self.http_client.post(
                url=self.webhook_url,
                content=payload_json,
                headers={
                    "Content-Type": "application/json",
                    "X-Event-Signature-256": signature_header,
                    "User-Agent": "Account-Events/1.0"
                },
                timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            logger.warning(
                f"⚠️ Integration webhook timeout - "
                f"event_id: {payload['event_id']}, url: {self.webhook_url}"
            )
            raise IntegrationPublishError(f"Timed out publishing {payload['event_type']}") from e
        except httpx.RequestError as e:
            logger.warning(
                f"⚠️ Failed to publish integration event - "
                f"event_id: {payload['event_id']}, error: {e}"
            )
            raise IntegrationPublishError(f"Failed to publish {payload['event_type']}: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(
                f"⚠️ Integration webhook returned non-2xx status - "
                f"event_id: {payload['event_id']}, status: {response.status_code}"
            )
            raise IntegrationPublishError(
                f"Integration webhook returned {response.status_code} for {payload['event_type']}"
            )

        logger.info(
            f"✅ Integration event delivered - "
            f"event_id: {payload['event_id']}, status: {response.status_code}"
        )

    def _build_payload(self, event: DomainEvent) -> dict:
        """
        Build the integration event envelope.

        Returns:
            Dictionary with event_id, event_type, published_at and data
        """
        return {
            "event_id": str(uuid.uuid4()),
            "event_type": event.kind.value,
            "published_at": datetime.now(timezone.utc).isoformat(),
            "data": event.to_dict(),
        }

    def _generate_signature(self, payload: str, secret: str) -> str:
        """
        Generate HMAC-SHA256 signature for webhook payload.

        Returns:
            Signature header value in format "sha256={signature}"
        """
        signature = hmac.new(
            secret.encode('utf-8'),
            payload.encode('utf-8'),
            hashlib.sha256
        ).hexdigest()

        return f"sha256={signature}"
