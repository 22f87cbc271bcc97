from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.service import AuthService
from app.core.auth.policies import Actor
from app.core.exceptions import Unauthorized
from app.modules.roles.repository import RoleRepository
from app.modules.profiles.repository import ProfileRepository
from app.shared.database.models import AppRole

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

def _resolve_actor(token: str, db: Session) -> Actor:
    """Construir el Actor a partir del token y de la tabla user_roles"""

    payload = AuthService.verify_token(token)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Payload del token inválido")
    user_id = str(user_id)

    # Primer acceso: rol por defecto y perfil vacío
    roles = RoleRepository(db)
    if roles.ensure_default_role(user_id):
        ProfileRepository(db).ensure_profile(user_id, payload.get("full_name"))

    return Actor(user_id=user_id, is_admin=roles.has_role(user_id, AppRole.ADMIN))

async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Actor:
    """Obtener el actor autenticado desde el token"""
    return _resolve_actor(credentials.credentials, db)

async def get_optional_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db)
) -> Actor:
    """Actor autenticado si hay token; anónimo en caso contrario"""
    if credentials is None:
        return Actor.anonymous()
    return _resolve_actor(credentials.credentials, db)

async def get_admin_actor(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency para administradores"""
    if not actor.is_admin:
        raise Unauthorized("Operación reservada a administradores")
    return actor
