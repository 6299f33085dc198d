"""
SweetHolic API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Create tables if not present
  3. Expose Prometheus /metrics endpoint

Every response, success or failure, uses the same envelope:
  {"success": bool, "message"?: str, "data"?: {...}}
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from sweetholic.config import settings
from sweetholic.database import AsyncSessionLocal, engine, init_db
from sweetholic.telemetry import instrument_app, setup_tracing
from sweetholic.routers import comments, follows, lists, posts, reactions, users

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing(engine.sync_engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting SweetHolic API (env=%s)", settings.environment)
    await init_db()
    logger.info("Database ready. API ready.")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="SweetHolic API",
    description=(
        "Food and dessert journal: posts with photos and rated dishes, "
        "reactions, comments, follows and curated, ordered lists."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


# ── Error envelope ─────────────────────────────────────────────────────────
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {where}: {first.get('msg')}" if where else message
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
app.include_router(follows.router, prefix="/api/follows", tags=["Follows"])
app.include_router(reactions.router, prefix="/api/reactions", tags=["Reactions"])
app.include_router(comments.router, prefix="/api/comments", tags=["Comments"])
app.include_router(lists.router, prefix="/api/lists", tags=["Lists"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/api", tags=["Health"])
async def index():
    return {
        "success": True,
        "message": "Welcome to SweetHolic API",
        "version": app.version,
        "endpoints": {
            "health": "/api/health",
            "users": "/api/users/*",
            "posts": "/api/posts/*",
            "follows": "/api/follows/*",
            "reactions": "/api/reactions/*",
            "comments": "/api/comments/*",
            "lists": "/api/lists/*",
        },
    }


@app.get("/api/health", tags=["Health"])
async def health():
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Health check: database unavailable (%s)", exc)
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "API is running but database is unavailable",
                "database": "disconnected",
                "service": settings.service_name,
                "timestamp": timestamp,
            },
        )
    return {
        "success": True,
        "message": "API is running",
        "database": "connected",
        "service": settings.service_name,
        "timestamp": timestamp,
    }
