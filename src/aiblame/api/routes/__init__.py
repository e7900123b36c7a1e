"""API route registration for aiblame."""

from fastapi import APIRouter

from . import meta, notes

router = APIRouter()
router.include_router(meta.router)
router.include_router(notes.router)

__all__ = ["router"]
