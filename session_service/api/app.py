from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def create_lifespan(ApplicationConfig):
    """Create tables on startup; run periodic session cleanup when an interval is configured"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from session_service.adapter.services.session_cleanup_worker import (
            SessionCleanupWorker,
        )
        from session_service.depends import engine
        from sqlmodel import SQLModel
        from session_service.domain import entities  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

        worker = None
        if ApplicationConfig.SESSION_CLEANUP_INTERVAL_HOURS > 0:
            worker = SessionCleanupWorker(
                interval_hours=ApplicationConfig.SESSION_CLEANUP_INTERVAL_HOURS,
                retention_days=ApplicationConfig.SESSION_RETENTION_DAYS,
                never_used_grace_hours=ApplicationConfig.NEVER_USED_GRACE_HOURS,
            )
            worker.start()
        app.state.cleanup_worker = worker

        yield

        if worker is not None:
            await worker.stop()
        await engine.dispose()

    return lifespan


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(
        title="Session Service",
        version="0.1.0",
        lifespan=create_lifespan(ApplicationConfig),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from session_service.api.routes import admin, auth, health_check, sessions, user

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(user.router, tags=["User"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
