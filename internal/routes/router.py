"""Internal routes aggregator.

Routes in this module are mounted at root level and are only meant for the
cluster's probes.
"""

from fastapi import APIRouter

from internal.routes import probes

internal_router = APIRouter()

# K8s probe endpoints
internal_router.include_router(probes.router)
