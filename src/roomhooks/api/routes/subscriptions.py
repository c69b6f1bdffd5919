"""Subscription routes: the subscribe trigger and per-room ledger views."""

import logging

from fastapi import APIRouter, Query

from roomhooks.dependencies import DBSession, SubscribeHandler, TraceId
from roomhooks.errors.exceptions import (
    AuthenticationError,
    NotFoundError,
    SubscriptionError,
    ValidationError,
)
from roomhooks.logging_config import bind_request_context
from roomhooks.models.enums import SubscribeOutcome
from roomhooks.models.subscription import SubscribeRequest, SubscriptionRecord
from roomhooks.repositories.room_repo import RoomRepository
from roomhooks.repositories.subscription_repo import SubscriptionRepository
from roomhooks.services.subscription_handler import normalize_events, normalize_repository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subscriptions"])


async def _ensure_room_exists(room_id: str, db) -> None:
    if not await RoomRepository(db).exists(room_id):
        raise NotFoundError("Room", room_id)


@router.post("/subscriptions", status_code=201)
async def subscribe(body: SubscribeRequest, handler: SubscribeHandler, trace_id: TraceId) -> dict:
    """Subscribe a room to events of a repository, creating or patching its webhook."""
    bind_request_context(trace_id, user_id=body.user_id, room_id=body.room_id)
    result = await handler.handle(body)
    logger.info("Subscribe trigger %s finished: %s", trace_id, result.outcome.value)

    if result.outcome == SubscribeOutcome.INVALID_INPUT:
        raise ValidationError(result.message, details=result.error)
    if result.outcome == SubscribeOutcome.AUTHENTICATION_REQUIRED:
        raise AuthenticationError(result.message)
    if result.outcome == SubscribeOutcome.SUBSCRIPTION_ERROR:
        raise SubscriptionError(result.message, details=result.error)

    return result.model_dump(mode="json", exclude_none=True)


@router.get("/rooms/{room_id}/subscriptions")
async def list_room_subscriptions(room_id: str, db: DBSession) -> list[dict]:
    """List a room's subscription records."""
    await _ensure_room_exists(room_id, db)
    rows = await SubscriptionRepository(db).list_by_room(room_id)
    return [SubscriptionRecord.model_validate(r).model_dump(mode="json") for r in rows]


@router.delete("/rooms/{room_id}/subscriptions")
async def unsubscribe(
    room_id: str,
    db: DBSession,
    repository: str = Query(...),
    events: list[str] | None = Query(None),
) -> dict:
    """Remove a room's records for a repository.

    The remote webhook keeps its events; cleaning those up is deferred.
    """
    await _ensure_room_exists(room_id, db)
    repository = normalize_repository(repository)
    if not repository:
        raise ValidationError("repository is required")
    removed = await SubscriptionRepository(db).remove_for_room(
        repository, room_id, normalize_events(events) or None
    )
    return {"room_id": room_id, "repository": repository, "removed": removed}
