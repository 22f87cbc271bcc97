# app/modules/offers/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import get_optional_actor, get_admin_actor
from app.core.auth.policies import Actor
from .service import OfferService
from .schemas import (
    CargoOfferCreate, CargoOfferUpdate, CargoOfferResponse,
    CargoOfferListResponse, CargoOfferDeleteResponse
)

router = APIRouter()

@router.get("", response_model=CargoOfferListResponse)
def list_offers(
    search: Optional[str] = Query(None, description="Buscar por ciudad o país (salida o llegada)"),
    db: Session = Depends(get_db)
):
    """
    Listar ofertas disponibles

    **Acceso:** público

    - Solo ofertas activas con kilos disponibles
    - Ordenadas por fecha de salida (más próximas primero)
    - `search` filtra sin distinguir mayúsculas sobre ciudades y países
    """
    return OfferService(db).list_active_offers(search)

@router.get("/admin/all", response_model=CargoOfferListResponse)
def list_all_offers(
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Listar todas las ofertas, incluidas inactivas (solo admin)"""
    return OfferService(db).list_all_offers(actor)

@router.get("/{offer_id}", response_model=CargoOfferResponse)
def get_offer(
    offer_id: int,
    actor: Actor = Depends(get_optional_actor),
    db: Session = Depends(get_db)
):
    """Obtener una oferta; las inactivas solo son visibles para administradores"""
    return OfferService(db).get_offer(offer_id, actor)

@router.post("", response_model=CargoOfferResponse, status_code=201)
def create_offer(
    data: CargoOfferCreate,
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """
    Publicar una oferta de kilos

    **Permisos requeridos:** Solo administradores

    Si no se envía `available_kilos`, se inicializa con `total_kilos`.
    """
    return OfferService(db).create_offer(data, actor)

@router.patch("/{offer_id}", response_model=CargoOfferResponse)
def update_offer(
    offer_id: int,
    data: CargoOfferUpdate,
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Modificar una oferta (solo admin)"""
    return OfferService(db).update_offer(offer_id, data, actor)

@router.delete("/{offer_id}", response_model=CargoOfferDeleteResponse)
def delete_offer(
    offer_id: int,
    confirm: bool = Query(False, description="Confirmar la eliminación en cascada de las reservas"),
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """
    Eliminar una oferta

    **Permisos requeridos:** Solo administradores

    ⚠️ Elimina también todas sus reservas y su historial. Requiere `confirm=true`.
    """
    return OfferService(db).delete_offer(offer_id, actor, confirm)
