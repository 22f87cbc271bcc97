# app/modules/offers/__init__.py
"""
Módulo de Ofertas - capacidad de equipaje publicada por trayecto

- Listado público de ofertas activas con búsqueda por ciudad / país
- CRUD de ofertas (solo administradores)
- Eliminación en cascada de reservas con confirmación explícita

Arquitectura:
- router.py: Endpoints FastAPI
- service.py: Lógica de negocio
- repository.py: Acceso a datos
- schemas.py: Modelos Pydantic de request/response
"""

from .router import router
from .service import OfferService
from .repository import OfferRepository

__all__ = [
    "router",
    "OfferService",
    "OfferRepository"
]
