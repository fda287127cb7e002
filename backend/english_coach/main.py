"""English Coach FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .agents.base.llm import AgentConfig
from .agents.coach.agent import ConversationAgent
from .api import auth, calls, dashboard
from .core.clock import utcnow
from .core.config import Settings, get_settings
from .core.errors import PersistenceError, SessionClosedError, SessionNotFoundError
from .core.logging import configure_logging
from .db.base import close_all, init_databases
from .observability.langsmith import initialize_langsmith

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    agent: Optional[ConversationAgent] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context for startup and shutdown events."""
        configure_logging(settings)
        logger.info(f"{settings.APP_NAME} starting up...")
        initialize_langsmith(settings)
        await init_databases()
        yield
        await close_all()
        logger.info(f"{settings.APP_NAME} shutting down...")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Conversational English practice with live corrections and progress tracking",
        version="0.1.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.conversation_agent = agent or ConversationAgent(AgentConfig.from_settings(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
    app.include_router(calls.router, prefix=settings.API_V1_PREFIX)
    app.include_router(dashboard.router, prefix=settings.API_V1_PREFIX)

    # Health check
    @app.get("/api/health")
    async def health_check():
        return {
            "status": "OK",
            "app": settings.APP_NAME,
            "timestamp": utcnow().isoformat(),
        }

    # Domain errors
    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return JSONResponse(status_code=404, content={"detail": "Session not found"})

    @app.exception_handler(SessionClosedError)
    async def session_closed_handler(request: Request, exc: SessionClosedError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error(f"Persistence failure on {request.url.path}: {exc.__cause__ or exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc) if settings.DEBUG else "An error occurred"
            }
        )

    return app


# Create the app instance
app = create_app()
