from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from indicator_analytics.api.routes import api_router
from indicator_analytics.core.config import get_settings
from indicator_analytics.core.rate_limit import SlidingWindowLimiter


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

settings = get_settings()
logger = logging.getLogger("indicator_analytics.api")

limiter = SlidingWindowLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Indicator Analytics API ready (forecast periods=%s, season length=%s, limit=%s/%ss).",
        settings.forecast_periods,
        settings.forecast_season_length,
        settings.rate_limit_requests,
        settings.rate_limit_window_seconds,
    )
    yield
    limiter.clear()
    logger.info("Indicator Analytics API shutdown complete.")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def throttle_and_time_requests(request: Request, call_next):
    client = request.client.host if request.client else "unknown"
    if not limiter.allow(client):
        logger.warning("Throttled %s on %s %s", client, request.method, request.url.path)
        return JSONResponse(
            status_code=429,
            content={"detail": "Rate limit exceeded. Please retry later."},
        )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover
        logger.exception("Analytics request failed: %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    logger.info(
        "%s %s -> %s %.2fms (client=%s)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
        client,
    )
    return response


@app.get("/healthz")
def healthz() -> dict:
    return {"ok": True, "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(api_router, prefix=settings.api_prefix)
