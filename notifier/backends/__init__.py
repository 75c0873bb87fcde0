"""Delivery backends: background worker (preferred) and foreground timers."""

from notifier.backends.background import BackgroundWorkerBackend, WorkerTimeoutError
from notifier.backends.base import DeliveryBackend
from notifier.backends.foreground import ForegroundTimerBackend

__all__ = [
    "DeliveryBackend",
    "BackgroundWorkerBackend",
    "ForegroundTimerBackend",
    "WorkerTimeoutError",
]
