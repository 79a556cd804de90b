# fleetpool/main.py
"""
FastAPI application entry point.
Includes the operator key middleware, error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from fleetpool.routers import vehicles, movements, bookings, logs, alerts, health
from fleetpool.database import create_tables
from fleetpool.config import settings
from fleetpool.exceptions import ConflictError, FleetError
from fleetpool.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Fleet Pool API",
    description="Shared vehicle pool: checkout/checkin, reservations, damage tracking.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (form/dashboard front-end on another origin) ───────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Operator Key Middleware ──────────────────────────────────────────────────
class OperatorKeyMiddleware(BaseHTTPMiddleware):
    """
    Guests may read; only the operator may change state.
    Every non-GET request needs X-API-Key = OPERATOR_API_KEY.
    Leave OPERATOR_API_KEY empty to disable the gate.
    """
    async def dispatch(self, request: Request, call_next):
        if request.method in ("GET", "HEAD", "OPTIONS") or not settings.OPERATOR_API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.OPERATOR_API_KEY:
            logger.warning(f"Rejected {request.method} {request.url.path}: missing or invalid operator key")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Operator key required"},
            )
        return await call_next(request)


if settings.OPERATOR_API_KEY:
    app.add_middleware(OperatorKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handler ─────────────────────────────────────────────────────
@app.exception_handler(FleetError)
async def fleet_error_handler(request: Request, exc: FleetError):
    content = {"detail": exc.message}
    if isinstance(exc, ConflictError) and exc.reason is not None:
        content["conflict"] = {
            "kind": exc.reason.kind,
            "booking_id": exc.reason.booking_id,
            "driver": exc.reason.driver,
            "start": exc.reason.start.isoformat() if exc.reason.start else None,
            "end": exc.reason.end.isoformat() if exc.reason.end else None,
        }
    return JSONResponse(status_code=exc.status_code, content=content)


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router,  prefix="/api/v1", tags=["🚗 Vehicles"])
app.include_router(movements.router, prefix="/api/v1", tags=["🔑 Checkout / Checkin"])
app.include_router(bookings.router,  prefix="/api/v1", tags=["📅 Bookings"])
app.include_router(logs.router,      prefix="/api/v1", tags=["📋 Trip History"])
app.include_router(alerts.router,    prefix="/api/v1", tags=["🔔 Alerts"])
app.include_router(health.router,    prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Fleet Pool backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🔐 Operator key {'enabled' if settings.OPERATOR_API_KEY else 'disabled'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Fleet Pool backend shutting down...")
