"""Daily notification counters."""

from datetime import datetime

from sqlmodel import Field, SQLModel


class NotificationStats(SQLModel):
    """Running lifecycle counters, reset on the first load of a new day."""

    total_scheduled: int = Field(default=0, ge=0)
    total_sent: int = Field(default=0, ge=0)
    total_clicked: int = Field(default=0, ge=0)
    total_dismissed: int = Field(default=0, ge=0)
    last_reset: datetime = Field(default_factory=datetime.now)
