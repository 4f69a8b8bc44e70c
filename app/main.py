# app/main.py
"""
FastAPI application entry point.
Includes security middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import entries, hardware, parkings, vehicles, alerts, health, billing
from app.routers import realtime  # noqa: F401  registers the Socket.IO handlers
from app.routers.hardware import deny
from app.database import create_tables
from app.errors import ParkingServiceError
from app.config import settings
from app.utils.logger import get_logger
from app.services.notifier import sio
import socketio
import time

logger = get_logger(__name__)

HARDWARE_PREFIX = "/api/v1/hardware"

app = FastAPI(
    title="Parking Management API",
    description="Parking entry/exit lifecycle, billing and real-time occupancy.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (allow dashboard on same LAN to call the API) ──────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to dashboard origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for staff endpoints.
    Hardware lane (/api/v1/hardware/*) is excluded: readers authenticate with HARDWARE_API_KEY.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in self.open_paths or path.startswith(HARDWARE_PREFIX) or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"success": False, "message": "Invalid or missing API key", "error": "Unauthorized"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(ParkingServiceError)
async def parking_error_handler(request: Request, exc: ParkingServiceError):
    logger.warning(f"{request.method} {request.url.path} refused: {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.kind},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    if request.url.path.startswith(HARDWARE_PREFIX):
        # Readers only understand OPEN_BARRIER / DENY
        return deny(status.HTTP_422_UNPROCESSABLE_ENTITY, "Malformed signal", {"error": "ValidationError"})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "message": "Invalid request", "error": "ValidationError",
                 "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    if request.url.path.startswith(HARDWARE_PREFIX):
        return deny(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error", "error": "ServerError"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(entries.router,  prefix="/api/v1", tags=["🚗 Entries"])
app.include_router(hardware.router, prefix="/api/v1", tags=["📡 Hardware lane"])
app.include_router(parkings.router, prefix="/api/v1", tags=["🅿️  Parkings & Tariffs"])
app.include_router(vehicles.router, prefix="/api/v1", tags=["🔍 Vehicles & Cards"])
app.include_router(billing.router,  prefix="/api/v1", tags=["💳 Billing"])
app.include_router(alerts.router,   prefix="/api/v1", tags=["🔔 Alerts"])
app.include_router(health.router,   prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Parking backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")
    if settings.HARDWARE_API_KEY == "CHANGE_ME":
        logger.warning("HARDWARE_API_KEY is still the default value, set it in .env")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Parking backend shutting down...")


# ── Socket.IO ────────────────────────────────────────────────────────────────
# Dashboards connect at /socket.io; every other path goes to the FastAPI app.
# Serve with: uvicorn app.main:socket_app
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
