"""Subscription ledger: which rooms listen to which events of a repository."""

import logging

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from roomhooks.db.models.subscription import SubscriptionRow
from roomhooks.repositories.base import BaseRepository
from roomhooks.services.id_generator import generate_id

logger = logging.getLogger(__name__)


class SubscriptionRepository(BaseRepository):
    """Durable store of ``(repository, event, webhook_id, room_id, user_id)`` records.

    Every write is committed on its own so that one failed insert never
    discards the records written before it.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, SubscriptionRow)

    async def subscriptions_for_repository(
        self, repository: str, user_id: str
    ) -> list[SubscriptionRow]:
        """Return every record for ``repository``.

        The webhook is shared by all rooms, so the lookup is repository-wide;
        ``user_id`` only identifies the caller in logs.
        """
        stmt = (
            select(SubscriptionRow)
            .where(SubscriptionRow.repository == repository)
            .order_by(SubscriptionRow.created_at)
        )
        result = await self.session.execute(stmt)
        rows = list(result.scalars().all())
        logger.debug(
            "Found %d subscription records for %s (user=%s)", len(rows), repository, user_id
        )
        return rows

    async def get_for_room(
        self, repository: str, room_id: str, event: str
    ) -> SubscriptionRow | None:
        stmt = select(SubscriptionRow).where(
            and_(
                SubscriptionRow.repository == repository,
                SubscriptionRow.room_id == room_id,
                SubscriptionRow.event == event,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def record_subscription(
        self,
        repository: str,
        event: str,
        webhook_id: str,
        room_id: str,
        user_id: str,
    ) -> bool:
        """Persist one record, returning False instead of raising on storage failure.

        An existing record for the same repository/room/event counts as success.
        """
        try:
            existing = await self.get_for_room(repository, room_id, event)
            if existing is not None:
                return True

            self.session.add(
                SubscriptionRow(
                    subscription_id=generate_id("sub_"),
                    repository=repository,
                    event=event,
                    webhook_id=webhook_id or "",
                    room_id=room_id,
                    user_id=user_id,
                )
            )
            await self.session.commit()
            return True
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Failed to record subscription %s/%s for room %s: %s",
                repository,
                event,
                room_id,
                exc,
            )
            return False

    async def list_by_room(self, room_id: str) -> list[SubscriptionRow]:
        stmt = (
            select(SubscriptionRow)
            .where(SubscriptionRow.room_id == room_id)
            .order_by(SubscriptionRow.repository, SubscriptionRow.event)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def remove_for_room(
        self, repository: str, room_id: str, events: list[str] | None = None
    ) -> int:
        """Delete a room's records for a repository (all events when ``events`` is None).

        Only ledger rows are removed; the remote webhook keeps its events.
        """
        conditions = [
            SubscriptionRow.repository == repository,
            SubscriptionRow.room_id == room_id,
        ]
        if events:
            conditions.append(SubscriptionRow.event.in_(events))
        result = await self.session.execute(delete(SubscriptionRow).where(and_(*conditions)))
        await self.session.commit()
        return result.rowcount or 0
