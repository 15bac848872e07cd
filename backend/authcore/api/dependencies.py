from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from authcore.core.config import Settings
from authcore.core.results import UserRecord
from authcore.services.auth_service import AuthService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    """AuthService built by the app factory"""
    return request.app.state.auth_service


def get_session_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user_optional(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[UserRecord]:
    """
    Resolve the session cookie to a user, or None.

    FastAPI caches dependencies per request, so the store is queried once
    and the result is handed to every handler that declares it.
    """
    return auth_service.resolve_session(token)


def get_current_user(
    user: Optional[UserRecord] = Depends(get_current_user_optional),
) -> UserRecord:
    """Same as get_current_user_optional but requires a logged-in user"""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not logged in",
        )
    return user
