"""Kubernetes probe endpoints.

Mounted at the root, outside the ``/vice`` routes, and reached by the kubelet
on the pod IP.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from common.core.telemetry import get_logger
from common.db.scoped import get_session

logger = get_logger(__name__)

router = APIRouter(tags=["internal"])


@router.get("/healthz")
async def healthz():
    """Liveness probe - is the process alive?"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """Readiness probe - can the job limits database be reached?"""
    try:
        async with get_session(readonly=True) as session:
            await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503, content={"status": "unavailable", "database": "disconnected"}
        )
    return {"status": "ok"}
