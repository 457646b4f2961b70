import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from cardsavvy.api.router import api_router
from cardsavvy.config import DEFAULT_SESSION_SECRET, get_settings
from cardsavvy.db.session import async_engine, create_tables
from cardsavvy.services.chat import ChatService
from cardsavvy.services.perplexity import PerplexityClient
from cardsavvy.services.rate_limiter import FixedWindowRateLimiter
from cardsavvy.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("CardSavvy backend starting up...")

    if not settings.perplexity_configured:
        raise RuntimeError(
            "PERPLEXITY_API_KEY is not set. Add it to the environment or .env before starting."
        )
    if settings.session_secret == DEFAULT_SESSION_SECRET:
        logger.warning("SESSION_SECRET is not set; using the insecure default.")

    if settings.create_tables_on_startup:
        await create_tables()

    http_client = httpx.AsyncClient(timeout=settings.perplexity_timeout)
    rate_limiter = FixedWindowRateLimiter(
        limit=settings.chat_rate_limit,
        window_seconds=settings.chat_rate_window_seconds,
    )
    perplexity = PerplexityClient.from_settings(settings, http_client, rate_limiter)

    app.state.rate_limiter = rate_limiter
    app.state.chat_service = ChatService(perplexity)

    yield

    await http_client.aclose()
    await async_engine.dispose()
    logger.info("CardSavvy backend shutting down...")


settings = get_settings()

app = FastAPI(
    title="CardSavvy",
    description="Credit card comparison API with an AI assistant for the Indian market",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS: allow frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Admin sessions (signed cookie)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    max_age=settings.session_max_age,
    https_only=settings.is_production,
)

app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "code": 400,
            "message": "Invalid input",
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": "error",
            "code": exc.status_code,
            "message": str(exc.detail),
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    logger.exception("Internal server error")
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "code": 500,
            "message": "Server error",
        },
    )
