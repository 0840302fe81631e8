"""
Top-level API router.

Aggregates the listing and admin routers.  ``main.create_app`` mounts
it under ``/api``.
"""

from fastapi import APIRouter

from .endpoints import admin, listings


router = APIRouter()

router.include_router(listings.router, prefix="/listings", tags=["listings"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
