"""Permission and capability state."""

from datetime import datetime
from enum import Enum

from sqlmodel import SQLModel


class PermissionStatus(str, Enum):
    """Platform notification permission values."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class PermissionState(SQLModel):
    """Result of a capability probe."""

    permission: PermissionStatus
    is_supported: bool
    last_checked: datetime
