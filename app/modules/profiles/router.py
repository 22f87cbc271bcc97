# app/modules/profiles/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor
from app.core.auth.policies import Actor
from .service import ProfileService
from .schemas import ProfileUpdate, ProfileResponse

router = APIRouter()

@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Obtener el perfil del usuario actual"""
    return ProfileService(db).get_my_profile(actor)

@router.put("/me", response_model=ProfileResponse)
def update_my_profile(
    data: ProfileUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Actualizar nombre, teléfono y documento de identidad

    Los campos enviados vacíos se guardan como null.
    """
    return ProfileService(db).update_my_profile(actor, data)
