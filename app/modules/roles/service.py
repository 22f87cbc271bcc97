from sqlalchemy.orm import Session
from typing import List
import logging

from app.core.auth.policies import Actor, authorize_read, require_admin
from app.core.exceptions import ValidationFailed
from app.shared.database.models import AppRole
from .repository import RoleRepository
from .schemas import RoleGrant, UserRoleResponse, MyRolesResponse

logger = logging.getLogger(__name__)

class RoleService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = RoleRepository(db)

    def get_my_roles(self, actor: Actor) -> MyRolesResponse:
        roles = self.repository.get_roles(actor.user_id)
        for role in roles:
            authorize_read(actor, role)

        return MyRolesResponse(
            user_id=actor.user_id,
            roles=[r.role for r in roles],
            is_admin=actor.is_admin
        )

    def list_roles(self, actor: Actor) -> List[UserRoleResponse]:
        require_admin(actor)
        return [UserRoleResponse.model_validate(r) for r in self.repository.get_all_roles()]

    def grant_role(self, actor: Actor, data: RoleGrant) -> UserRoleResponse:
        require_admin(actor)
        user_role = self.repository.grant(data.user_id, data.role)
        logger.info(f"🔑 Rol '{data.role.value}' asignado a {data.user_id} por {actor.user_id}")
        return UserRoleResponse.model_validate(user_role)

    def revoke_role(self, actor: Actor, user_id: str, role: AppRole) -> bool:
        """
        Retirar un rol.

        Un administrador no puede retirarse a sí mismo el rol admin.
        """
        require_admin(actor)
        if role == AppRole.ADMIN and actor.owns(user_id):
            raise ValidationFailed("No puedes retirarte tu propio rol de administrador")

        removed = self.repository.revoke(user_id, role)
        if removed:
            logger.info(f"🔒 Rol '{role.value}' retirado a {user_id} por {actor.user_id}")
        return removed

