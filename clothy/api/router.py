"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter

from .tryon import tryon_router

router = APIRouter()


# ── Health ───────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "clothy"}


# ── V1 routes ────────────────────────────────────────────────────────

router.include_router(tryon_router, prefix="/v1")
