"""API dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from notifier.context import NotificationContext
from notifier.services.scheduler import NotificationScheduler

security = HTTPBearer()


def get_context(request: Request) -> NotificationContext:
    """Get the notification context built in the app lifespan."""
    context = getattr(request.app.state, "notifications", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification scheduler not running",
        )
    return context


Context = Annotated[NotificationContext, Depends(get_context)]


def get_scheduler(context: Context) -> NotificationScheduler:
    return context.scheduler


Scheduler = Annotated[NotificationScheduler, Depends(get_scheduler)]


def get_current_user_id(
    context: Context,
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> str:
    """Get the authenticated user id from the JWT's sub claim."""
    settings = context.settings
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    # An empty HS256 key would accept tokens signed with ""
    if not settings.NOTIFIER_API_SECRET:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.NOTIFIER_API_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        user_id: str | None = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    return user_id


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
