"""
main.py
FastAPI application entry point.
Registers all routers, middleware, startup/shutdown events.

- Hasura GraphQL is the only data store; every request forwards the caller's ID token
- Firebase Authentication for identity
- Redis for the token deny-list, rate limiting and small caches
- Prometheus metrics
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from logging import LogRecord

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from redis.exceptions import RedisError

import config.hasura_client as hasura
import config.redis_client as redis_store
from config.hasura_client import HasuraError, close_hasura, error_status_code, friendly_error_message, init_hasura
from config.redis_client import close_redis, init_redis
from config.settings import settings
from shared.utils.security import init_firebase

# Service routers
from services.auth.router import router as auth_router
from services.profile.router import router as profile_router
from services.job.router import router as job_router
from services.booking.router import router as booking_router
from services.favorite.router import router as favorite_router
from services.invoice.router import router as invoice_router
from services.message.router import router as message_router
from services.notification.router import router as notification_router
from services.admin.router import router as admin_router


# ── Logging ──────────────────────────────────────────────────

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "instance": os.getenv("INSTANCE_NAME", "unknown"),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(message)s"
)
handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())
logging.getLogger().handlers = [handler]
logger = logging.getLogger(__name__)


# ── Lifespan (startup/shutdown) ───────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle handler."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.APP_ENV})")

    init_firebase()
    await init_hasura()
    logger.info(f"GraphQL endpoint: {settings.HASURA_GRAPHQL_ENDPOINT}")

    await init_redis()
    logger.info("Redis connected")

    yield

    await close_redis()
    await close_hasura()
    logger.info("Server shutdown complete")


# ── App Factory ───────────────────────────────────────────────

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## Ethiopian Maids Platform API

REST layer in front of the Hasura GraphQL backend:
- **Auth**: Firebase ID tokens, profile resolution, registration, logout deny-list
- **Profiles**: base profile plus maid / sponsor / agency details
- **Jobs**: draft → publish → pause / fill, hourly expiry
- **Bookings**: sponsor requests, maid responses
- **Messaging** and **Favorites**
- **Notifications**: in-app feed with mobile deep-link routes
- **Admin**: maid verification checklist, approve / reject with multi-channel notification, bulk actions, CSV export

### Authentication
All protected endpoints require `Authorization: Bearer <firebase_id_token>`.

### Roles
- `sponsor`: post jobs, request bookings, keep favourites
- `maid`: manage profile, respond to bookings
- `agency`: manage agency profile and managed maids
- `admin`: verification queue and platform administration
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware (outermost first) ───────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time", "Content-Disposition"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)

    # ── Custom Middleware ──────────────────────────────────────────

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add unique X-Request-ID to every request for tracing."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def process_time_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        process_time = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time"] = f"{process_time}ms"
        return response

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        """
        Fixed-window limiter for unauthenticated callers, keyed by IP.
        Authenticated traffic is limited upstream. Fails open if Redis is down.
        """
        skip_paths = {"/health", "/docs", "/redoc", "/openapi.json", "/metrics"}
        if request.url.path in skip_paths:
            return await call_next(request)

        client = redis_store.redis_client
        if client and not request.headers.get("Authorization", "").startswith("Bearer "):
            client_ip = request.client.host if request.client else "unknown"
            key = f"rate:unauth:{client_ip}"
            try:
                count = await client.incr(key)
                if count == 1:
                    await client.expire(key, 60)
            except RedisError as e:
                logger.error(f"Rate limit check failed: {e}")
            else:
                if count > settings.RATE_LIMIT_UNAUTH_PER_MINUTE:
                    logger.warning(f"Rate limit exceeded for IP {client_ip}")
                    return JSONResponse(
                        status_code=429,
                        content={"detail": "Rate limit exceeded. Please slow down."},
                        headers={"Retry-After": "60"},
                    )

        return await call_next(request)

    # ── Exception Handlers ─────────────────────────────────────────

    @app.exception_handler(HasuraError)
    async def hasura_exception_handler(request: Request, exc: HasuraError):
        """GraphQL failures that no router translated itself."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"[{request_id}] GraphQL error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=error_status_code(exc),
            content={
                "detail": friendly_error_message(exc),
                "code": exc.code,
                "request_id": request_id,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler. Never expose stack traces in production."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"[{request_id}] Exception: {exc}", exc_info=True)

        detail = str(exc) if settings.DEBUG else "An internal server error occurred"
        return JSONResponse(
            status_code=500,
            content={
                "detail": detail,
                "request_id": request_id,
            },
        )

    # ── Routes ────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check():
        checks = {"status": "ok", "version": settings.APP_VERSION}

        try:
            if hasura.hasura_client:
                await hasura.hasura_client.ping()
            checks["graphql"] = "ok"
        except HasuraError:
            checks["graphql"] = "error"
            checks["status"] = "degraded"

        try:
            if redis_store.redis_client:
                await redis_store.redis_client.ping()
            checks["redis"] = "ok"
        except RedisError:
            checks["redis"] = "error"
            checks["status"] = "degraded"

        status_code = 200 if checks["status"] == "ok" else 503
        return JSONResponse(content=checks, status_code=status_code)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    # Register all service routers
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(job_router)
    app.include_router(booking_router)
    app.include_router(favorite_router)
    app.include_router(invoice_router)
    app.include_router(message_router)
    app.include_router(notification_router)
    app.include_router(admin_router)

    # ── Prometheus Metrics ─────────────────────────────────────────
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", tags=["Monitoring"])

    return app


# ── Entry Point ───────────────────────────────────────────────

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True,
    )
