"""Directory sync admin endpoints."""

from groups.presentation.authman.routes import router

__all__ = ["router"]
