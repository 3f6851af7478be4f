"""
Rate Card Estimator API v1.0
FastAPI backend: rate card browsing, estimate totals (prelims, VAT) and
quotation / invoice Excel export. Stateless — no database, no auth.
"""
import os
import time
import logging
from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

# Load .env file automatically in dev (no-op if the file is missing)
from dotenv import load_dotenv
load_dotenv()

from fastapi.middleware.cors import CORSMiddleware

from estimator import config
from estimator.services.logging_config import setup_logging
from estimator.services.middleware import RequestTimingMiddleware
from estimator.services.perf_monitor import tracker as perf_tracker
from estimator.services.rate_catalogue import get_catalogue

setup_logging(level=config.LOG_LEVEL, json_output=config.LOG_JSON)
logger = logging.getLogger("estimator-api")

_PROCESS_START = time.monotonic()

app = FastAPI(
    title="Rate Card Estimator API",
    version=config.APP_VERSION,
    description="Estimate and invoice generator for rate-card construction works",
)


# ---------------------------------------------------------------------------
# Security Headers Middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


# ---------------------------------------------------------------------------
# CORS: restricted to allowed origins from env
# ---------------------------------------------------------------------------
_cors_default = "http://localhost:3000,http://localhost:8000"
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)
app.add_middleware(SecurityHeadersMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

# Routers
from estimator.api.catalogue_routes import router as catalogue_router
from estimator.api.estimate_routes import router as estimate_router

app.include_router(catalogue_router)
app.include_router(estimate_router)


@app.get("/health")
async def health_check():
    entries, categories = get_catalogue()
    return {
        "status": "active",
        "version": config.APP_VERSION,
        "catalogue_entries": len(entries),
        "catalogue_categories": len(categories),
    }


@app.get("/metrics")
async def metrics():
    """Estimate / export counters from the in-process PerformanceTracker."""
    snapshot = perf_tracker.get_metrics()
    return {
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
        **snapshot,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("estimator.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
