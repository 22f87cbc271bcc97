# app/modules/roles/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor, get_admin_actor
from app.core.auth.policies import Actor
from app.shared.database.models import AppRole
from .service import RoleService
from .schemas import RoleGrant, UserRoleResponse, MyRolesResponse

router = APIRouter()

@router.get("/me", response_model=MyRolesResponse)
def get_my_roles(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Roles del usuario actual"""
    return RoleService(db).get_my_roles(actor)

@router.get("", response_model=List[UserRoleResponse])
def list_roles(
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Listar todas las asignaciones de roles (solo admin)"""
    return RoleService(db).list_roles(actor)

@router.post("", response_model=UserRoleResponse, status_code=201)
def grant_role(
    data: RoleGrant,
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Asignar un rol a un usuario (idempotente, solo admin)"""
    return RoleService(db).grant_role(actor, data)

@router.delete("/{user_id}/{role}")
def revoke_role(
    user_id: str,
    role: AppRole,
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Retirar un rol (solo admin)"""
    removed = RoleService(db).revoke_role(actor, user_id, role)
    return {
        "success": True,
        "removed": removed,
        "user_id": user_id,
        "role": role.value
    }
