# app/modules/profiles/__init__.py
"""
Módulo de Perfiles - datos de contacto del usuario (nombre, teléfono, documento)

El router se importa directamente desde `router.py`: la autenticación
depende de este módulo para crear el perfil en el primer acceso.
"""

from .service import ProfileService
from .repository import ProfileRepository

__all__ = [
    "ProfileService",
    "ProfileRepository"
]
