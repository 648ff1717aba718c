"""
Main FastAPI application for the Portfolio Agent

This module creates and configures the FastAPI application with:
- CORS middleware for the portfolio site
- Correlation id middleware
- API routes (ask)
- Health check endpoint
"""

import asyncio
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from portfolio_agent import __version__
from portfolio_agent.agents.ask import AskWorkflow
from portfolio_agent.api.routes import ask
from portfolio_agent.api.routes.ask import error_response
from portfolio_agent.api.schemas import HealthResponse
from portfolio_agent.config.settings import settings
from portfolio_agent.infra.parameter_store import ParameterStore
from portfolio_agent.llm.client import OpenAIClient
from portfolio_agent.memory.conversation_store import ConversationStore
from portfolio_agent.utils.errors import ErrorCode
from portfolio_agent.utils.logger import setup_logger


CORRELATION_HEADER = "X-Correlation-Id"
INVALID_BODY_REASON = "invalid_body"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events

    - Startup: configure logging, initialize stores, build the workflow,
      run an initial cleanup and start the periodic cleanup task
    - Shutdown: cancel the cleanup task
    """
    setup_logger()
    logger.info("FastAPI application starting...")

    parameter_store = ParameterStore()
    await parameter_store.async_init()

    conversation_store = ConversationStore()
    await conversation_store.async_init()

    llm = OpenAIClient(params=parameter_store)
    app.state.ask_workflow = AskWorkflow(parameter_store, llm, conversation_store)

    try:
        deleted = await conversation_store.cleanup_expired()
        if deleted > 0:
            logger.info(f"Cleaned up {deleted} expired conversations on startup")
    except Exception as e:
        logger.error(f"Initial cleanup failed: {e}")

    async def periodic_cleanup():
        """Periodically delete expired conversations"""
        while True:
            try:
                await asyncio.sleep(settings.conversation_cleanup_interval_hours * 3600)
                await conversation_store.cleanup_expired()
            except asyncio.CancelledError:
                logger.info("Cleanup task cancelled")
                break
            except Exception as e:
                logger.error(f"Periodic cleanup failed: {e}")

    cleanup_task = asyncio.create_task(periodic_cleanup())

    yield

    logger.info("FastAPI application shutting down...")
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    logger.info("Cleanup task stopped")


app = FastAPI(
    title="Portfolio Agent API",
    description="""
    Answers visitor questions about a portfolio owner's resume and interests.

    Off-topic questions are refused, flagged content is rejected, and each
    conversation is limited to a fixed number of answered turns.

    ```bash
    curl -X POST http://localhost:8000/api/ask \\
         -H "Content-Type: application/json" \\
         -d '{"question": "Which programming languages appear on the resume?"}'
    ```
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["OPTIONS", "POST"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Reuse the caller's correlation id (or create one) and echo it back"""
    correlation_id = (request.headers.get(CORRELATION_HEADER) or "").strip() or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    correlation_id = getattr(request.state, "correlation_id", "-")
    logger.bind(correlation_id=correlation_id).warning(
        f"ask.rejected (error={ErrorCode.INVALID_INPUT.value}, reason={INVALID_BODY_REASON}, "
        f"http_status=400, errors={len(exc.errors())})"
    )
    return error_response(ErrorCode.INVALID_INPUT, INVALID_BODY_REASON, 400)


app.include_router(ask.router)


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """
    Health check endpoint

    Returns service status, name, and version.
    """
    return HealthResponse(
        status="healthy",
        service="portfolio-agent",
        version=__version__,
    )
