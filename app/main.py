# app/main.py
import asyncio
import time
import uuid
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
from typing import Callable

from .config import settings
from .api.v1.router import api_router
from .database import init_db, close_db, get_db_stats, check_db_health
from .db.setup import setup_database
from .redis_client import redis_client, get_redis_stats
from .services.cache import cache_service
from .utils.notifications import cleanup_notification_service
from .utils.response import error_body

# ============================================================
# Setup Logging
# ============================================================
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================
# Startup/Shutdown Events
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    # ✅ STARTUP
    logger.info("🚀 Starting Jevah API...")
    logger.info(f"🔒 Debug mode: {settings.DEBUG}")

    async def connect_redis():
        try:
            await redis_client.connect()
            logger.info("✅ Redis connected successfully")
        except Exception as e:
            logger.error(f"❌ Redis connection failed: {e}")
            logger.warning("⚠️ API will continue without Redis caching")

    async def prepare_database():
        await init_db()
        await run_in_threadpool(setup_database)

    try:
        await asyncio.gather(prepare_database(), connect_redis())
    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    logger.info("✅ Application startup complete!")

    yield  # Application runs

    # ❌ SHUTDOWN
    logger.info("🛑 Shutting down Jevah API...")

    async def disconnect_redis():
        try:
            await redis_client.disconnect()
            logger.info("✅ Redis disconnected")
        except Exception as e:
            logger.error(f"⚠️ Redis disconnect error: {e}")

    await asyncio.gather(close_db(), disconnect_redis(), return_exceptions=True)
    cleanup_notification_service()

    logger.info("👋 Goodbye!")


# ============================================================
# Create FastAPI Application
# ============================================================

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="API for the Jevah gospel media platform",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
    }
)

# ============================================================
# Middleware Configuration
# ============================================================

# 1️⃣ CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
    max_age=3600,
)


# 2️⃣ Request ID + Logging Middleware
@app.middleware("http")
async def log_requests(request: Request, call_next: Callable):
    """Tag each request with an ID and log it with timing"""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    start_time = time.time()

    logger.info(f"➡️ {request.method} {request.url.path} [{request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"⬅️ {request.method} {request.url.path} "
        f"[{response.status_code}] {duration:.3f}s"
    )

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{duration:.3f}"
    return response


# 3️⃣ Security Headers Middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next: Callable):
    response = await call_next(request)

    if settings.HTTPS_ONLY:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

# ============================================================
# API Routers
# ============================================================

app.include_router(api_router, prefix="/api/v1")

# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root() -> dict:
    """API information endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "message": "Welcome to Jevah API",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/health"
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Fast health check for load balancers, no dependency checks"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health/detailed", tags=["Health"])
async def health_check_detailed() -> dict:
    """Checks database and Redis connectivity"""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }

    db_healthy = await check_db_health()
    health_status["database"] = "connected" if db_healthy else "disconnected"
    if not db_healthy:
        health_status["status"] = "degraded"

    redis_healthy = await redis_client.ping()
    health_status["redis"] = "connected" if redis_healthy else "disconnected"

    return health_status


@app.get("/metrics", tags=["Monitoring"])
async def metrics() -> dict:
    """Database pool, Redis and cache statistics"""
    return {
        "database": get_db_stats(),
        "redis": await get_redis_stats(),
        "cache": cache_service.get_stats(),
        "debug": settings.DEBUG,
    }

# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every HTTP error uses the {success, message} envelope"""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Validation failed", errors))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        f"❌ Unhandled exception [Request ID: {request_id}]: {str(exc)}",
        exc_info=True
    )

    # Hide internal errors in production
    message = str(exc) if settings.DEBUG else "Internal server error"
    body = error_body(message)
    body["requestId"] = request_id
    return JSONResponse(status_code=500, content=body)

# ============================================================
# Run Application
# ============================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
