import logging
import platform
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

logger = logging.getLogger(__name__)
router = APIRouter(tags=["status"])


@router.get("/")
def root():
    return {"message": "Job Tracker API is running"}


@router.get("/api/status")
def api_status(request: Request):
    """Liveness plus version metadata."""
    settings = request.app.state.settings
    uptime = time.monotonic() - request.app.state.started_at
    return {
        "status": "online",
        "uptime": f"{uptime:.3f} seconds",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.app_env,
        "version": settings.app_version,
        "python": {
            "version": platform.python_version(),
            "platform": platform.system().lower(),
            "arch": platform.machine(),
        },
    }


@router.get("/health/live")
def health_live():
    return {"status": "ok"}


@router.get("/health/ready")
def health_ready(request: Request):
    try:
        with request.app.state.database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception:
        logger.exception("Readiness check failed")
        return JSONResponse(status_code=503, content={"status": "not_ready"})
