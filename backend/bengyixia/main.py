from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from bengyixia.config import settings
from bengyixia.exceptions import CaptchaVerificationError
from bengyixia.logging_config import setup_logging
from bengyixia.middleware.logging import CORRELATION_HEADER, LoggingMiddleware
from bengyixia.middleware.rate_limit import limiter
from bengyixia.routers import captcha

logger = structlog.get_logger()


def check_captcha_secret() -> None:
    """Refuse to run production on the publicly known fallback secret."""
    if not settings.uses_fallback_secret:
        return
    if settings.environment == "production":
        raise RuntimeError(
            "CAPTCHA_SECRET is not set. The fallback secret is public and must not be "
            "used in production; set CAPTCHA_SECRET in the environment or .env."
        )
    logger.warning("captcha_secret_fallback_in_use", environment=settings.environment)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and validate configuration before serving."""
    setup_logging()
    check_captcha_secret()
    yield


app = FastAPI(
    title="bengyixia",
    description="Stateless captcha service for the jump-rope tracker",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(CaptchaVerificationError)
async def captcha_error_handler(request: Request, exc: CaptchaVerificationError):
    return JSONResponse(status_code=400, content={"detail": exc.public_message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Runs outside LoggingMiddleware, so the header has to be added here
    headers = {}
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        headers[CORRELATION_HEADER] = correlation_id
    return JSONResponse(
        status_code=500, content={"detail": "Internal Server Error"}, headers=headers
    )


app.add_middleware(LoggingMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_HEADER],
)

# Routers
app.include_router(captcha.router, prefix="/api", tags=["captcha"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
