"""
Domain event listeners and the startup registry configuration.

Listeners run inside the commit, before changes are persisted. A
listener that raises aborts the commit.
"""

import logging
from typing import Optional

import httpx

from account_events.application.dispatcher import ListenerRegistry
from account_events.config import Settings
from account_events.core.interfaces import DomainEventListener
from account_events.domain.events import AccountCreated, AccountSuspended, EventKind
from account_events.services.integration_publisher import IntegrationEventPublisher

logger = logging.getLogger(__name__)


class SendEmailForAccountCreatedListener(DomainEventListener):
    """Sends the welcome email for a newly created account"""

    def __init__(self, sender: str):
        self._sender = sender

    async def handle_event(self, event: AccountCreated) -> None:
        logger.info(
            f"📧 Account created event handled for {event.email} - "
            f"sending welcome email from {self._sender}"
        )


class PublishIntegrationEventForAccountCreatedListener(DomainEventListener):
    """
    Lets other services know an account was created.

    Without a publisher (no INTEGRATION_WEBHOOK_URL) the event is only logged.
    """

    def __init__(self, publisher: Optional[IntegrationEventPublisher] = None):
        self._publisher = publisher

    async def handle_event(self, event: AccountCreated) -> None:
        if self._publisher is None:
            logger.info(
                f"Integration publishing disabled - account created event "
                f"for {event.email} not forwarded"
            )
            return
        await self._publisher.publish(event)


class NotifyAccountSuspendedListener(DomainEventListener):
    """Notifies the account owner about a suspension"""

    async def handle_event(self, event: AccountSuspended) -> None:
        logger.info(
            f"Account {event.account_id} suspended - notifying {event.email} "
            f"(reason: {event.reason})"
        )


def build_listener_registry(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None
) -> ListenerRegistry:
    """
    Build the process-wide listener registry.

    Args:
        settings: Application settings
        http_client: Shared client for outbound calls; integration
            publishing needs both this and INTEGRATION_WEBHOOK_URL

    Returns:
        Registry ready to be frozen into a dispatcher
    """
    publisher = None
    if settings.integration_webhook_url and http_client is not None:
        publisher = IntegrationEventPublisher(
            http_client,
            webhook_url=settings.integration_webhook_url,
            webhook_secret=settings.integration_webhook_secret,
            timeout=settings.integration_webhook_timeout,
        )

    return (
        ListenerRegistry()
        .add_listener(EventKind.ACCOUNT_CREATED, SendEmailForAccountCreatedListener(settings.email_sender))
        .add_listener(EventKind.ACCOUNT_CREATED, PublishIntegrationEventForAccountCreatedListener(publisher))
        .add_listener(EventKind.ACCOUNT_SUSPENDED, NotifyAccountSuspendedListener())
    )
