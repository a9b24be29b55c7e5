"""Health check endpoint (unauthenticated)."""

from fastapi import APIRouter

from n2nadmin import __version__

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
