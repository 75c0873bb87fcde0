"""Message protocol between the scheduler and the background worker.

Requests travel to the worker's inbox and carry a reply future; the worker
resolves it with an acknowledgement. Events travel the other way through
the worker's outbox and carry no reply.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MessageType(str, Enum):
    """Worker message types."""

    # Requests (scheduler → worker)
    SCHEDULE_NOTIFICATION = "SCHEDULE_NOTIFICATION"
    CANCEL_NOTIFICATION = "CANCEL_NOTIFICATION"
    CANCEL_ALL_NOTIFICATIONS = "CANCEL_ALL_NOTIFICATIONS"
    GET_SCHEDULED_NOTIFICATIONS = "GET_SCHEDULED_NOTIFICATIONS"

    # Events (worker → scheduler)
    NOTIFICATION_SENT = "NOTIFICATION_SENT"
    NOTIFICATION_CLICKED = "NOTIFICATION_CLICKED"
    NOTIFICATION_DISMISSED = "NOTIFICATION_DISMISSED"


@dataclass
class WorkerMessage:
    """One message on the worker channel.

    Attributes:
        type: Message type
        data: Message payload (JSON-compatible)
        reply: Future resolved by the receiver for request/response messages
    """

    type: MessageType
    data: dict[str, Any] = field(default_factory=dict)
    reply: asyncio.Future | None = None

    def respond(self, result: Any) -> None:
        if self.reply is not None and not self.reply.done():
            self.reply.set_result(result)

    def fail(self, error: Exception) -> None:
        if self.reply is not None and not self.reply.done():
            self.reply.set_exception(error)
