from fastapi import APIRouter

from skoolar.modules.auth import router as auth_router
from skoolar.modules.registrations import admin_router as admin_registrations_router
from skoolar.modules.registrations import router as registrations_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    registrations_router, prefix="/registrations", tags=["School Registrations"]
)

api_router.include_router(
    admin_registrations_router,
    prefix="/admin/registrations",
    tags=["Admin - Registrations"],
)
