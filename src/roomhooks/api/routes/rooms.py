"""Room registration routes."""

from fastapi import APIRouter

from roomhooks.dependencies import DBSession
from roomhooks.errors.exceptions import ConflictError, NotFoundError
from roomhooks.models.subscription import RoomCreate, RoomRecord
from roomhooks.repositories.room_repo import RoomRepository

router = APIRouter(tags=["Rooms"])


@router.post("/rooms", status_code=201)
async def register_room(body: RoomCreate, db: DBSession) -> dict:
    repo = RoomRepository(db)
    if await repo.exists(body.room_id):
        raise ConflictError(f"Room '{body.room_id}' already registered")
    row = await repo.create(room_id=body.room_id, name=body.name)
    await db.commit()
    return RoomRecord.model_validate(row).model_dump(mode="json")


@router.get("/rooms/{room_id}")
async def get_room(room_id: str, db: DBSession) -> dict:
    row = await RoomRepository(db).get(room_id)
    if not row:
        raise NotFoundError("Room", room_id)
    return RoomRecord.model_validate(row).model_dump(mode="json")
