from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from authcore.core.config import Settings
from authcore.core.results import LogInErrorReason, LogInOk, SignUpErrorReason, SignUpOk, UserRecord
from authcore.api.dependencies import (
    get_auth_service,
    get_current_user,
    get_current_user_optional,
    get_session_token,
    get_settings,
)
from authcore.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


class UserCreate(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    user: Optional[UserResponse] = None


# Sync handlers run in FastAPI's thread pool, so bcrypt and store queries
# never block the event loop


@router.post("/sign-up", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def sign_up(user_data: UserCreate, auth_service: AuthService = Depends(get_auth_service)):
    """Register a new user"""
    result = auth_service.sign_up(user_data.username, user_data.password)
    if isinstance(result, SignUpOk):
        return UserResponse(id=result.id, username=result.username)

    if result.reason == SignUpErrorReason.USERNAME_TAKEN:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
    if result.reason == SignUpErrorReason.INVALID_INPUT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.detail)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An error occurred during sign-up"
    )


@router.post("/log-in", response_model=UserResponse)
def log_in(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Log in and receive a session cookie"""
    result = auth_service.log_in(form_data.username, form_data.password)
    if isinstance(result, LogInOk):
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=result.token,
            max_age=settings.SESSION_EXPIRE_MINUTES * 60,
            httponly=True,
            samesite="lax",
            secure=settings.SESSION_COOKIE_SECURE,
        )
        return result.user

    if result.reason == LogInErrorReason.INTERNAL:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred during log-in"
        )
    # Unknown username and wrong password share one message so the
    # response does not reveal which usernames exist
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Incorrect username or password",
    )


@router.post("/log-out", response_model=SessionResponse)
def log_out(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Log out by dropping the session cookie"""
    auth_service.log_out(token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return SessionResponse(user=None)


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: UserRecord = Depends(get_current_user)):
    """Get current user information"""
    return current_user


@router.get("/session", response_model=SessionResponse)
def get_session(current_user: Optional[UserRecord] = Depends(get_current_user_optional)):
    """Current identity, or null when nobody is logged in"""
    user = UserResponse.model_validate(current_user) if current_user else None
    return SessionResponse(user=user)
