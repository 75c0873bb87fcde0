"""Environment configuration for the notification scheduler."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.NOTIFIER_API_SECRET: str = os.getenv("NOTIFIER_API_SECRET", "")
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.JWT_ALGORITHM: str = "HS256"
        self.NOTIFIER_USER_ID: str = os.getenv("NOTIFIER_USER_ID", "")

        # Vendor push (OneSignal)
        self.ONESIGNAL_APP_ID: str = os.getenv("ONESIGNAL_APP_ID", "")
        self.ONESIGNAL_REST_API_KEY: str = os.getenv("ONESIGNAL_REST_API_KEY", "")
        self.ONESIGNAL_API_URL: str = os.getenv(
            "ONESIGNAL_API_URL", "https://onesignal.com/api/v1"
        )
        self.ONESIGNAL_TIMEOUT_SECONDS: float = float(
            os.getenv("ONESIGNAL_TIMEOUT_SECONDS", "10")
        )

        # Scheduler limits and timing
        self.MAX_QUEUE_SIZE: int = int(os.getenv("MAX_QUEUE_SIZE", "100"))
        self.SWEEP_INTERVAL_SECONDS: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "60"))
        self.STALE_AFTER_SECONDS: float = float(os.getenv("STALE_AFTER_SECONDS", "3600"))
        self.WORKER_ACK_TIMEOUT_SECONDS: float = float(
            os.getenv("WORKER_ACK_TIMEOUT_SECONDS", "5")
        )
        self.ENABLE_BACKGROUND_WORKER: bool = _env_bool("ENABLE_BACKGROUND_WORKER", True)

        # Local display
        self.AUTO_CLOSE_SECONDS: float = float(os.getenv("AUTO_CLOSE_SECONDS", "10"))
        self.DEFAULT_ICON: str = os.getenv("DEFAULT_ICON", "/favicon.ico")
        self.DEFAULT_BADGE: str = os.getenv("DEFAULT_BADGE", "/favicon.ico")
        self.PLATFORM_PERMISSION: str = os.getenv("PLATFORM_PERMISSION", "default")

        # Storage keys
        self.SETTINGS_STORAGE_KEY: str = os.getenv(
            "SETTINGS_STORAGE_KEY", "notification_settings"
        )
        self.STATS_STORAGE_KEY: str = os.getenv("STATS_STORAGE_KEY", "notification_stats")
        self.WORKER_STORAGE_KEY: str = os.getenv(
            "WORKER_STORAGE_KEY", "notification_worker_schedule"
        )
        self.PUSH_SUBSCRIPTIONS_STORAGE_KEY: str = os.getenv(
            "PUSH_SUBSCRIPTIONS_STORAGE_KEY", "push_subscriptions"
        )

    @property
    def onesignal_configured(self) -> bool:
        return bool(self.ONESIGNAL_APP_ID and self.ONESIGNAL_REST_API_KEY)

    def validate(self) -> None:
        """Validate that required environment variables are set."""
        if not self.NOTIFIER_API_SECRET:
            raise ValueError("NOTIFIER_API_SECRET environment variable is required")
        if self.PLATFORM_PERMISSION not in ("default", "granted", "denied"):
            raise ValueError(
                f"PLATFORM_PERMISSION must be default, granted or denied, "
                f"got {self.PLATFORM_PERMISSION!r}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    return settings
