"""Subscription ledger table: one row per (repository, room, event)."""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roomhooks.db.base import Base, TimestampMixin


class SubscriptionRow(Base, TimestampMixin):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("repository", "room_id", "event", name="uq_subscription_repo_room_event"),
    )

    subscription_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    repository: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    event: Mapped[str] = mapped_column(String(100), nullable=False)
    webhook_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    room_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
