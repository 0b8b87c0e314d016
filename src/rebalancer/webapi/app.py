"""FastAPI application for the cron worker."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.logging import get_logger
from .exceptions import setup_exception_handlers
from .models.responses import MessageResponse
from .routers import cron_router, health_router, portfolio_router, signals_router

logger = get_logger(__name__)

ROOT_MESSAGE = "Cron Worker is running."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting rebalancer API", version=__version__)
    yield
    logger.info("Rebalancer API shutdown completed")


async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        remote_addr=request.client.host if request.client else None,
    )

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        method=request.method,
        path=request.url.path,
    )

    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Portfolio Rebalancer API",
        description="""
        Cron worker that rebalances a simulated portfolio from queued BUY and
        SELL signals, with tiered trailing stop-losses on every holding.
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.middleware("http")(add_request_id_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(cron_router, prefix="/api", tags=["Rebalance"])
    app.include_router(portfolio_router, prefix="/api", tags=["Portfolio"])
    app.include_router(signals_router, prefix="/api", tags=["Signals"])

    @app.get(
        "/",
        response_model=MessageResponse,
        summary="Liveness Probe",
        description="Plain liveness message, no authentication",
    )
    async def root(request: Request) -> MessageResponse:
        return MessageResponse.create(
            message=ROOT_MESSAGE, request_id=request.state.request_id
        )

    logger.info("FastAPI application created")
    return app


# Create the app instance
app = create_app()
