"""
API v1 routes.
"""

from fastapi import APIRouter

from furioza.api.v1 import admin, forum, profile, transfers

router = APIRouter()

router.include_router(forum.router, prefix="/forum", tags=["Forum"])
router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(transfers.router, prefix="/transfers", tags=["Transfers"])
router.include_router(admin.router, prefix="/admin", tags=["Administration"])
