# app/modules/tracking/__init__.py
"""
Módulo de Seguimiento - estados del envío

- Cambio de estado por administradores con historial inmutable
- Consulta pública por código de seguimiento (KG-XXXXXXXX)
- Historial visible para el dueño de la reserva y administradores
"""

from .router import router
from .service import StatusTrackerService
from .repository import StatusHistoryRepository

__all__ = [
    "router",
    "StatusTrackerService",
    "StatusHistoryRepository"
]
