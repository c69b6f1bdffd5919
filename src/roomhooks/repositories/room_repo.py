"""Room repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from roomhooks.db.models.room import RoomRow
from roomhooks.repositories.base import BaseRepository


class RoomRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, RoomRow)

    async def get(self, room_id: str) -> RoomRow | None:
        return await self.get_by_id("room_id", room_id)

    async def exists(self, room_id: str) -> bool:
        return await self.get(room_id) is not None
