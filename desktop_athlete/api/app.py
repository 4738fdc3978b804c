"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
error rendering, and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from desktop_athlete.api.routes import router as chat_router
from desktop_athlete.assistant import create_gateway, get_assistant_config
from desktop_athlete.chat import ConversationOrchestrator, ConversationStore
from desktop_athlete.models import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Builds the assistant gateway and conversation store from the environment
    unless a store was injected, and closes the gateway on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info("Starting Desktop Athlete API...")
    gateway = None
    if getattr(app.state, "conversations", None) is None:
        config = get_assistant_config()
        gateway = create_gateway(config)
        app.state.conversations = ConversationStore(
            lambda: ConversationOrchestrator.from_config(gateway, config),
            max_sessions=config.max_sessions,
        )
        logger.info(f"Using {config.gateway} gateway for assistant {config.assistant_id}")
    yield
    logger.info("Shutting down Desktop Athlete API...")
    if gateway is not None:
        await gateway.aclose()


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with a readable message."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body') or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=f"Invalid request: {problems}").model_dump(exclude_none=True),
    )


def create_app(conversations: ConversationStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        conversations: Optional preconfigured conversation store. When
            omitted, one is built from the environment at startup.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Desktop Athlete API",
        description=(
            "Chat with Desktop Athlete, an AI assistant that recommends free "
            "20+ minute HIIT, Tabata and calisthenics workouts. Each message is "
            "answered by a hosted assistant run, polled until it completes."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.conversations = conversations

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(StarletteHTTPException, http_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)

    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "desktop-athlete"}

    return application


app = create_app()
