"""Push subscription models."""

from datetime import datetime

from sqlmodel import Field, SQLModel


class PushSubscription(SQLModel):
    """A vendor push device registered for a user.

    One active device per external user id; registering again replaces it.
    """

    external_user_id: str = Field(min_length=1, max_length=255)
    player_id: str = Field(min_length=1, max_length=255)
    device_type: str = Field(default="web", max_length=32)
    is_active: bool = True
    updated_at: datetime = Field(default_factory=datetime.now)


class PushSubscriptionCreate(SQLModel):
    """Schema for registering the caller's push device."""

    player_id: str = Field(min_length=1, max_length=255)
    device_type: str = Field(default="web", max_length=32)


class PushSubscriptionStatus(SQLModel):
    """Schema for the caller's subscription status."""

    active: bool
    player_id: str | None = None
