# app/modules/roles/__init__.py
"""
Módulo de Roles - asignación de roles admin / user

El router se importa directamente desde `router.py`: la autenticación
depende de este módulo para resolver el rol del actor.
"""

from .service import RoleService
from .repository import RoleRepository

__all__ = [
    "RoleService",
    "RoleRepository"
]
