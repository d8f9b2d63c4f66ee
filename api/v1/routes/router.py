from fastapi import APIRouter

from packages.vice.routes import vice

api_router = APIRouter()

api_router.include_router(vice.router, prefix="/vice", tags=["vice"])
