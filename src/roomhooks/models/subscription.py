"""Pydantic models for subscription requests and ledger records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from roomhooks.models.enums import SubscribeOutcome


class SubscribeRequest(BaseModel):
    """Inbound trigger: a room asks for events of a repository."""

    repository: str | None = None
    events: list[str] | None = None
    room_id: str
    user_id: str
    access_token: str | None = Field(default=None, repr=False)


class SubscribeResult(BaseModel):
    outcome: SubscribeOutcome
    message: str
    repository: str | None = None
    webhook_id: str | None = None
    events: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == SubscribeOutcome.SUBSCRIBED


class SubscriptionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subscription_id: str
    repository: str
    event: str
    webhook_id: str
    room_id: str
    user_id: str
    created_at: datetime | None = None


class RoomCreate(BaseModel):
    room_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)


class RoomRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    room_id: str
    name: str
    created_at: datetime | None = None
