"""Groups presentation layer.

Each slice package contains its own routes and models.
"""

from __future__ import annotations

from fastapi import APIRouter

from groups.presentation import authman

router = APIRouter()

router.include_router(authman.router)

__all__ = ["router"]
