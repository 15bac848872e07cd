import logging
from typing import Optional
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from authcore.core.config import Settings, settings as default_settings
from authcore.core.database import build_engine, build_session_factory, init_db
from authcore.core.errors import InfrastructureFailure
from authcore.core.results import UserRecord
from authcore.services.auth_service import AuthService
from authcore.api.dependencies import get_current_user_optional
from authcore.api.routes import auth

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
) -> FastAPI:
    """
    Build the application.

    The session factory (and with it the connection pool) is created here
    unless one is passed in, then handed to the AuthService. Tests pass
    their own factory bound to SQLite.
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL)

    if session_factory is None:
        engine = build_engine(settings.get_database_url())
        # Create tables if they don't exist
        init_db(engine)
        session_factory = build_session_factory(engine)

    app = FastAPI(
        title="authcore",
        description="Username/password authentication with session cookies",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.auth_service = AuthService.from_settings(settings, session_factory)

    @app.exception_handler(InfrastructureFailure)
    async def infrastructure_failure_handler(request: Request, exc: InfrastructureFailure):
        # Store or hasher down - never reported as a credential problem
        logger.error(f"Infrastructure failure on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal error"},
        )

    app.include_router(auth.router)

    @app.get("/")
    def root(current_user: Optional[UserRecord] = Depends(get_current_user_optional)):
        """Index - the resolved identity is passed in, not read from shared state"""
        if current_user is None:
            return {"user": None}
        return {"user": {"id": current_user.id, "username": current_user.username}}

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app
