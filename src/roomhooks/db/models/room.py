"""Chat rooms known to the service."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from roomhooks.db.base import Base, TimestampMixin


class RoomRow(Base, TimestampMixin):
    __tablename__ = "rooms"

    room_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
