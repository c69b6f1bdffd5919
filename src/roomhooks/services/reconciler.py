"""Webhook subscription reconciliation.

Brings three stores into agreement for one repository: the remote webhook
(owned by GitHub), the local subscription ledger, and the events a room asks
for. The webhook is a singleton per repository shared by every room; new
events are merged into it with a patch, never by creating a second hook.

Steps run strictly in order: read the ledger, synchronise the remote hook,
then write ledger records. Ledger writes never happen before the remote
call has completed, so no record can point at a hook that was never
configured.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from roomhooks.errors.exceptions import RemoteAPIError
from roomhooks.github.base import WebhookClient
from roomhooks.models.github import WebhookDescriptor
from roomhooks.repositories.subscription_repo import SubscriptionRepository

logger = logging.getLogger(__name__)

LEDGER_WRITE_FAILED = "Error creating new subscription entry"


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation call."""

    success: bool
    repository: str
    webhook_id: str = ""
    recorded_events: list[str] = field(default_factory=list)
    remote_action: str = "none"  # "create", "patch" or "none"
    error: str | None = None


class RepositoryLocks:
    """One asyncio lock per repository name.

    Serialises reconciliations of the same repository inside this process so
    two rooms subscribing at once cannot both create a webhook. A lock lives
    only while some caller holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, repository: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(repository, asyncio.Lock())
        self._holders[repository] = self._holders.get(repository, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[repository] -= 1
            if not self._holders[repository]:
                del self._holders[repository]
                del self._locks[repository]


class SubscriptionReconciler:
    """Creates or patches a repository webhook and records room subscriptions."""

    def __init__(
        self,
        ledger: SubscriptionRepository,
        client: WebhookClient,
        callback_url: str,
        locks: RepositoryLocks | None = None,
    ) -> None:
        self.ledger = ledger
        self.client = client
        self.callback_url = callback_url
        self.locks = locks or RepositoryLocks()

    async def reconcile(
        self,
        repository: str,
        desired_events: Iterable[str],
        room_id: str,
        user_id: str,
        access_token: str,
    ) -> ReconcileResult:
        desired = set(desired_events)
        if not repository or not desired:
            raise ValueError("repository and at least one event are required")

        async with self.locks.hold(repository):
            return await self._reconcile(repository, desired, room_id, user_id, access_token)

    async def _reconcile(
        self,
        repository: str,
        desired: set[str],
        room_id: str,
        user_id: str,
        access_token: str,
    ) -> ReconcileResult:
        try:
            records = await self.ledger.subscriptions_for_repository(repository, user_id)
        except SQLAlchemyError as exc:
            logger.error("Could not read subscriptions for %s: %s", repository, exc)
            return ReconcileResult(
                success=False,
                repository=repository,
                error="Error reading existing subscriptions",
            )
        covered = {record.event for record in records}
        webhook_id = next((r.webhook_id for r in records if r.webhook_id), "")

        new_events = desired - covered
        hook: WebhookDescriptor | None = None
        remote_action = "none"

        try:
            if new_events and not webhook_id:
                remote_action = "create"
                hook = await self.client.create_webhook(
                    repository, self.callback_url, access_token, desired
                )
            elif new_events:
                remote_action = "patch"
                hook = await self.client.patch_webhook(
                    repository, access_token, webhook_id, covered | new_events
                )
        except RemoteAPIError as exc:
            logger.warning(
                "Webhook %s for %s failed, no subscriptions recorded: %s",
                remote_action,
                repository,
                exc.message,
            )
            return ReconcileResult(
                success=False,
                repository=repository,
                webhook_id=webhook_id,
                remote_action=remote_action,
                error=exc.message,
            )

        to_record = sorted(desired)
        if hook is not None:
            if webhook_id and hook.id != webhook_id:
                logger.warning(
                    "GitHub reported hook %s for %s while ledger holds %s",
                    hook.id,
                    repository,
                    webhook_id,
                )
            webhook_id = hook.id
            to_record = [event for event in to_record if hook.serves(event)]
            skipped = sorted(desired - set(to_record))
            if skipped:
                logger.warning(
                    "Webhook %s on %s does not report events %s; not recording them",
                    webhook_id,
                    repository,
                    skipped,
                )

        recorded: list[str] = []
        for event in to_record:
            if await self.ledger.record_subscription(
                repository, event, webhook_id, room_id, user_id
            ):
                recorded.append(event)

        if not recorded:
            if remote_action != "none":
                logger.error(
                    "Webhook %s on %s updated (%s) but no subscription for room %s was recorded",
                    webhook_id,
                    repository,
                    remote_action,
                    room_id,
                )
            return ReconcileResult(
                success=False,
                repository=repository,
                webhook_id=webhook_id,
                remote_action=remote_action,
                error=LEDGER_WRITE_FAILED,
            )

        logger.info(
            "Room %s subscribed to %s events %s via webhook %s (remote=%s)",
            room_id,
            repository,
            recorded,
            webhook_id,
            remote_action,
        )
        return ReconcileResult(
            success=True,
            repository=repository,
            webhook_id=webhook_id,
            recorded_events=recorded,
            remote_action=remote_action,
        )
