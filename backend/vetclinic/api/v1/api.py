"""Module: api."""

from fastapi import APIRouter

# Core operational routes (health/auth/admin).
from vetclinic.api.v1.routes.health import router as health_router
from vetclinic.api.v1.routes.auth import router as auth_router
from vetclinic.api.v1.routes.admin import router as admin_router

# Domain routes used by the owner and veterinarian dashboards.
from vetclinic.api.v1.routes.pets import router as pets_router
from vetclinic.api.v1.routes.appointments import router as appointments_router
from vetclinic.api.v1.routes.vet import router as vet_router
from vetclinic.api.v1.routes.dashboard import router as dashboard_router
from vetclinic.api.v1.routes.diary import router as diary_router
from vetclinic.api.v1.routes.reviews import router as reviews_router
from vetclinic.api.v1.routes.clinics import router as clinics_router


api_router = APIRouter()

# Register operational endpoints first for service-level concerns.
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

# Register business/domain endpoints consumed by the application UI.
api_router.include_router(pets_router, prefix="/pets", tags=["pets"])
api_router.include_router(appointments_router, prefix="/appointments", tags=["appointments"])
api_router.include_router(vet_router, prefix="/vet", tags=["vet"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(diary_router, prefix="/diary", tags=["diary"])
api_router.include_router(reviews_router, prefix="/reviews", tags=["reviews"])
api_router.include_router(clinics_router, prefix="/clinics", tags=["clinics"])
