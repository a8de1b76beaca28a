"""
Block Cost Model API
FastAPI service over the rates → policies → calculator → aggregator pipeline.
Stateless: every request carries (or defaults) its configuration snapshot.
"""
import os
import time
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from costmodel.services.logging_config import setup_logging
from costmodel.services.middleware import RequestTimingMiddleware
from costmodel.services.perf_monitor import tracker as perf_tracker
from costmodel.api.cost_model_routes import router as cost_model_router
from costmodel.config import PIPELINE_ORDER

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
_debug_components = [c.strip() for c in os.getenv("LOG_DEBUG_COMPONENTS", "").split(",") if c.strip()]
setup_logging(level=_log_level, json_output=_json_logs, debug_components=_debug_components)
logger = logging.getLogger("cost-model-api")

# Record process start time for uptime calculation
_PROCESS_START = time.monotonic()

APP_VERSION = "3.0.0"

app = FastAPI(
    title="Block Cost Model API",
    version=APP_VERSION,
    description="Block-level marginal cost engine with NPV / IRR projection",
)

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With"],
)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

app.include_router(cost_model_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": APP_VERSION,
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
        "pipeline": PIPELINE_ORDER,
        "metrics": perf_tracker.get_metrics(),
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting cost model API on port {port}")
    uvicorn.run("costmodel.main:app", host="0.0.0.0", port=port)
