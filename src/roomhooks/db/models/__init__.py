"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from roomhooks.db.models.room import RoomRow
from roomhooks.db.models.subscription import SubscriptionRow

__all__ = [
    "RoomRow",
    "SubscriptionRow",
]
