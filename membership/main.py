"""
FastAPI Application Entry Point
Application factory, error mapping and route registration
"""

import logging
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from membership.auth.permissions import AccessGate
from membership.config import Settings, settings as default_settings
from membership.database import build_store
from membership.errors import (
    ConflictError,
    Forbidden,
    InvalidStateError,
    MembershipError,
    NotFoundError,
    RegistrationError,
    Unauthorized,
    ValidationError,
)
from membership.logging_config import configure_logging
from membership.routes import admin, auth, college_admin, events, public, super_admin, users
from membership.services import Services
from membership.store import EntityStore

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

STATUS_CODES = {
    NotFoundError: 404,
    ConflictError: 409,
    ValidationError: 400,
    RegistrationError: 400,
    Unauthorized: 401,
    Forbidden: 403,
    InvalidStateError: 409,
}


def status_for(exc: MembershipError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app(settings: Optional[Settings] = None, store: Optional[EntityStore] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Settings to run with (environment/.env by default)
        store: Entity store to use (built from STORE_BACKEND by default)

    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)
    store = store or build_store(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Membership portal for a student tech society",
        version=APP_VERSION,
        debug=settings.DEBUG,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.gate = AccessGate(settings)
    app.state.services = Services(store, settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MembershipError)
    async def membership_error_handler(request: Request, exc: MembershipError):
        status_code = status_for(exc)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "message": "Internal server error"},
        )

    @app.on_event("startup")
    async def startup():
        """Run on application startup"""
        await store.connect()
        logger.info("%s started in %s mode", settings.APP_NAME, settings.APP_ENV)

    @app.on_event("shutdown")
    async def shutdown():
        """Run on application shutdown"""
        await store.disconnect()
        logger.info("%s stopped", settings.APP_NAME)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": APP_VERSION,
        }

    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(users.router, prefix="/api/users", tags=["Members"])
    app.include_router(events.router, prefix="/api/events", tags=["Events"])
    app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
    app.include_router(super_admin.router, prefix="/api/super-admin", tags=["Super Admin"])
    app.include_router(college_admin.router, prefix="/api/college-admin", tags=["College Admin"])
    app.include_router(public.router, prefix="/api/public", tags=["Public"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "membership.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG,
    )
