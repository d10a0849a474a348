"""
FastAPI Server для Astra Health Backend
Запускает API endpoints для web/app клиентов
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from config.config import validate_config, API_RATE_LIMIT, ENVIRONMENT, WEBAPP_URL
from config.logging import setup_logging
from config.sentry import init_sentry
from astra.api.errors import astra_error_handler
from astra.api.router import router as api_router
from astra.core.exceptions import AstraError
from astra.database.engine import dispose_engine
from astra.tasks.code_cleanup import CodeCleanupScheduler

# Setup logging at module level (must run before app creation)
# This ensures logging works when uvicorn imports the module
setup_logging("api")
init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager для startup/shutdown events
    """
    logger.info("Starting Astra API Server...")

    # NOTE: Database tables managed by Alembic migrations
    # Run: alembic upgrade head

    cleanup_scheduler = CodeCleanupScheduler()
    cleanup_scheduler.start()

    yield

    logger.info("Shutting down Astra API Server...")

    cleanup_scheduler.stop()

    await dispose_engine()
    logger.info("Database connections closed")


# Rate limit per IP address (API_RATE_LIMIT in .env)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[API_RATE_LIMIT],
    storage_uri="memory://",
)

app = FastAPI(
    title="Astra Health API",
    description="Check-ins, streaks, health profiles and Telegram account linking",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# CORS: exact origins only
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

if WEBAPP_URL and WEBAPP_URL not in allowed_origins:
    allowed_origins.append(WEBAPP_URL)

if ENVIRONMENT == "development":
    ngrok_url = os.getenv("NGROK_URL")
    if ngrok_url and ngrok_url not in allowed_origins:
        allowed_origins.append(ngrok_url)
        logger.warning(f"Development mode: Added ngrok URL to CORS: {ngrok_url}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """
    Добавляет security headers ко всем ответам
    """
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if ENVIRONMENT == "production" and request.url.scheme == "https":
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains; preload"
        )

    return response


app.include_router(api_router, prefix="/api")

# Domain errors -> status by error kind
app.add_exception_handler(AstraError, astra_error_handler)


@app.get("/")
async def root():
    return {
        "service": "Astra Health API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTPException properly - return correct status code and detail
    """
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {exc.detail}")
    elif exc.status_code >= 400:
        logger.warning(f"HTTP {exc.status_code}: {exc.detail}")

    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unexpected errors
    """
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "kind": "internal",
        },
    )


if __name__ == "__main__":
    import uvicorn

    validate_config()
    logger.info("Configuration validated successfully")

    # Listen on localhost only, exposed through nginx
    uvicorn.run(
        "api_server:app",
        host="127.0.0.1",
        port=int(os.getenv("PORT", "3001")),
        reload=ENVIRONMENT == "development",
        log_level="info",
    )
