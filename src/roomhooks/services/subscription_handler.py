"""Maps a subscribe trigger onto the reconciler and one of four outcomes."""

import logging
import re

from sqlalchemy.exc import SQLAlchemyError

from roomhooks.models.enums import SubscribeOutcome
from roomhooks.models.subscription import SubscribeRequest, SubscribeResult
from roomhooks.repositories.room_repo import RoomRepository
from roomhooks.services.notifications import subscribe_message
from roomhooks.services.reconciler import SubscriptionReconciler

logger = logging.getLogger(__name__)

_REPOSITORY_RE = re.compile(r"^[^/\s]+/[^/\s]+$")


def normalize_repository(repository: str | None) -> str:
    """Trim surrounding whitespace; case is preserved."""
    return (repository or "").strip()


def normalize_events(events: list[str] | None) -> list[str]:
    """Drop blank entries and duplicates, keeping first-seen order.

    Names are otherwise kept exactly as given; GitHub event names are
    matched byte for byte.
    """
    seen: dict[str, None] = {}
    for event in events or []:
        if isinstance(event, str) and event.strip():
            seen.setdefault(event, None)
    return list(seen)


class SubscriptionRequestHandler:
    """Validates the trigger, runs the reconciler and reports the outcome.

    No exception from validation, the remote API or the ledger leaves
    :meth:`handle`; every path returns a :class:`SubscribeResult`.
    """

    def __init__(self, reconciler: SubscriptionReconciler, rooms: RoomRepository):
        self.reconciler = reconciler
        self.rooms = rooms

    async def handle(self, request: SubscribeRequest) -> SubscribeResult:
        repository = normalize_repository(request.repository)
        events = normalize_events(request.events)

        if not repository or not _REPOSITORY_RE.match(repository) or not events:
            return self._result(SubscribeOutcome.INVALID_INPUT, repository or None)

        try:
            room_exists = await self.rooms.exists(request.room_id)
        except SQLAlchemyError as exc:
            logger.error("Could not look up room %s: %s", request.room_id, exc)
            return self._result(
                SubscribeOutcome.SUBSCRIPTION_ERROR,
                repository,
                error="Error reading room",
            )
        if not room_exists:
            logger.info("Subscribe request for unknown room %s", request.room_id)
            return self._result(
                SubscribeOutcome.INVALID_INPUT,
                repository,
                error=f"Room '{request.room_id}' not found",
            )

        if not request.access_token:
            return self._result(SubscribeOutcome.AUTHENTICATION_REQUIRED, repository)

        result = await self.reconciler.reconcile(
            repository,
            events,
            request.room_id,
            request.user_id,
            request.access_token,
        )
        if not result.success:
            return self._result(
                SubscribeOutcome.SUBSCRIPTION_ERROR,
                repository,
                webhook_id=result.webhook_id or None,
                error=result.error,
            )

        return self._result(
            SubscribeOutcome.SUBSCRIBED,
            repository,
            webhook_id=result.webhook_id,
            events=result.recorded_events,
        )

    @staticmethod
    def _result(
        outcome: SubscribeOutcome,
        repository: str | None,
        *,
        webhook_id: str | None = None,
        events: list[str] | None = None,
        error: str | None = None,
    ) -> SubscribeResult:
        return SubscribeResult(
            outcome=outcome,
            message=subscribe_message(outcome, repository),
            repository=repository,
            webhook_id=webhook_id,
            events=events or [],
            error=error,
        )
