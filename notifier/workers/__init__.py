"""Background execution context for scheduled notifications.

The worker is addressed only through WorkerMessage requests and reports
deliveries and user interaction on its outbox.
"""

from notifier.workers.messages import MessageType, WorkerMessage
from notifier.workers.notification_worker import NotificationWorker

__all__ = [
    "MessageType",
    "WorkerMessage",
    "NotificationWorker",
]
