"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import auth, status, users

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix=users.USERS_PREFIX)
router.include_router(status.router, prefix="/status", tags=["status"])
