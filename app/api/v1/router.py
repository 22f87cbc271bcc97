# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.modules.offers.router import router as offers_router
from app.modules.reservations.router import router as reservations_router
from app.modules.tracking.router import router as tracking_router
from app.modules.roles.router import router as roles_router
from app.modules.profiles.router import router as profiles_router

from app.config.settings import settings

# Crear router principal de la API v1
api_router = APIRouter()

api_router.include_router(auth_router)

api_router.include_router(
    offers_router,
    prefix="/offers",
    tags=["Offers"]
)

api_router.include_router(
    reservations_router,
    prefix="/reservations",
    tags=["Reservations"]
)

api_router.include_router(
    tracking_router,
    prefix="/tracking",
    tags=["Tracking"]
)

api_router.include_router(
    roles_router,
    prefix="/roles",
    tags=["Roles"]
)

api_router.include_router(
    profiles_router,
    prefix="/profiles",
    tags=["Profiles"]
)

# ==================== ENDPOINTS RAÍZ ====================

@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": f"{settings.app_name} v1",
        "version": settings.version,
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "offers": "/api/v1/offers",
            "reservations": "/api/v1/reservations",
            "tracking": "/api/v1/tracking",
            "roles": "/api/v1/roles",
            "profiles": "/api/v1/profiles"
        }
    }

@api_router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version,
        "architecture": "modular_monolith",
        "modules": {
            "offers": {"status": "active", "features": ["Búsqueda de trayectos", "Gestión de ofertas (admin)"]},
            "reservations": {"status": "active", "features": ["Reserva atómica de kilos", "Cancelación"]},
            "tracking": {"status": "active", "features": ["Estados del envío", "Seguimiento público"]}
        }
    }
