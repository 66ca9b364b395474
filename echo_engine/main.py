import logging
import os
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, is_connected
from .routers import echo, engine
from .services.engine_service import reset_engine_service

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="Echo Engine API", default_response_class=ORJSONResponse)
settings = get_settings()

# Build CORS origins list from env (supports CSV). Include both localhost and 127.0.0.1 by default.
_origins_env = os.getenv("CORS_ORIGINS") or settings.cors_origin or "http://localhost:5173,http://127.0.0.1:5173"
_allow_origins = [o.strip() for o in _origins_env.split(",") if o.strip()]
logger.debug("CORS allow_origins=%s", _allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


# Simple slow-request logger
@app.middleware("http")
async def log_slow_requests(request, call_next):
    t0 = time.time()
    response = await call_next(request)
    dt = (time.time() - t0) * 1000
    slow_ms = int(os.getenv("SLOW_REQUEST_MS", "800"))
    if dt >= slow_ms:
        logger.warning(
            "slow request %s %s %sms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


@app.on_event("startup")
async def startup():
    await connect_to_mongo()
    logger.info(
        "Echo engine ready: free_daily_swipes=%s match_policy=%s reset_tz=%s",
        settings.free_daily_swipes,
        settings.match_policy,
        settings.reset_timezone,
    )


@app.on_event("shutdown")
async def shutdown():
    reset_engine_service()
    await close_mongo_connection()


# Routers
app.include_router(engine.router, prefix="/api", tags=["engine"])
app.include_router(echo.router, prefix="/api", tags=["echo"])


@app.get("/")
async def root():
    return {"status": "echo-engine-ok"}


@app.get("/api/health/db")
async def db_health():
    return {
        "mongo": "connected" if is_connected() else "disconnected",
        "db": str(get_settings().mongo_db),
    }
