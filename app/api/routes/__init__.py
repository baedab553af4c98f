"""API routes."""

from fastapi import APIRouter

from app.api.routes import admin, auth, health, reservations, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
