"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notifier.api.notifications import router as notifications_router
from notifier.api.push import router as push_router
from notifier.api.settings import router as settings_router
from notifier.config import get_settings
from notifier.context import NotificationContext


def create_app(context: NotificationContext | None = None) -> FastAPI:
    """Build the API around a notification context.

    Args:
        context: Pre-built context; one is built from the environment when omitted
    """
    settings = context.settings if context is not None else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the scheduler on startup and stop it on shutdown."""
        settings.validate()
        notifications = context or NotificationContext.build(settings)
        await notifications.start()
        app.state.notifications = notifications
        yield
        await notifications.stop()
        app.state.notifications = None

    app = FastAPI(
        title="Study Notification Scheduler API",
        description="Schedules, delivers and tracks study reminders",
        version="1.0.0",
        lifespan=lifespan,
    )

    cors_origins = [settings.FRONTEND_URL, "http://localhost:3000", "http://localhost:3001"]
    # Remove duplicates and empty strings
    cors_origins = [origin for origin in set(cors_origins) if origin]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(notifications_router)
    app.include_router(settings_router)
    app.include_router(push_router)

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
