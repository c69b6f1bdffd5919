"""Abstract interface for the repository host's webhook management API."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from roomhooks.models.github import WebhookDescriptor


class WebhookClient(ABC):
    """Creates and updates repository webhooks.

    Both operations replace the hook's event list with exactly the events
    given; callers merge event sets themselves.
    """

    @abstractmethod
    async def create_webhook(
        self,
        repository: str,
        callback_url: str,
        token: str,
        events: Iterable[str],
    ) -> WebhookDescriptor:
        """Provision a webhook delivering ``events`` to ``callback_url``.

        Raises:
            RemoteAPIError: on a non-2xx response or transport failure.
        """
        ...

    @abstractmethod
    async def patch_webhook(
        self,
        repository: str,
        token: str,
        webhook_id: str,
        events: Iterable[str],
    ) -> WebhookDescriptor:
        """Replace the event list of an existing webhook.

        Raises:
            RemoteAPIError: on a non-2xx response or transport failure.
        """
        ...
