# app/modules/reservations/__init__.py
"""
Módulo de Reservas - motor de reservas de kilos

- Reserva atómica: descuento de capacidad + código de seguimiento + historial inicial
- Cancelación con devolución de kilos
- Consulta de reservas propias y, para administradores, de todas

Arquitectura:
- router.py: Endpoints FastAPI
- service.py: Lógica de negocio
- repository.py: Acceso a datos
- schemas.py: Modelos Pydantic de request/response
"""

from .router import router
from .service import ReservationService
from .repository import ReservationRepository

__all__ = [
    "router",
    "ReservationService",
    "ReservationRepository"
]
