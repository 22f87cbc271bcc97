from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.schemas import ActorResponse
from app.core.auth.dependencies import get_current_actor
from app.core.auth.policies import Actor
from app.modules.roles.repository import RoleRepository
from app.modules.profiles.repository import ProfileRepository

router = APIRouter(prefix="/auth", tags=["authentication"])

@router.get("/me", response_model=ActorResponse)
def get_me(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Identidad del token actual

    Los tokens los emite el proveedor de identidad; aquí solo se verifican.
    El indicador de administrador sale de la tabla de roles, nunca del token.
    """
    roles = RoleRepository(db).get_roles(actor.user_id)
    profile = ProfileRepository(db).get_profile(actor.user_id)

    return ActorResponse(
        user_id=actor.user_id,
        is_admin=actor.is_admin,
        roles=[r.role for r in roles],
        full_name=profile.full_name if profile else None
    )
