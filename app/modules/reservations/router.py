# app/modules/reservations/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor, get_admin_actor
from app.core.auth.policies import Actor
from .service import ReservationService
from .schemas import (
    ReservationCreate, ReservationUpdate, ReservationResponse,
    ReservationListResponse, ReservationAdminListResponse, ReservationCancelResponse
)

router = APIRouter()

@router.post("", response_model=ReservationResponse, status_code=201)
def create_reservation(
    data: ReservationCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Reservar kilos en una oferta

    **Validaciones:**
    - La oferta debe existir y estar activa
    - `kilos_reserved` entre 1 y los kilos disponibles

    **Respuesta:**
    - Reserva en estado `pending_submission` con su código de seguimiento (KG-XXXXXXXX)
    - Precio total calculado con el precio por kg de la oferta
    """
    return ReservationService(db).reserve(
        actor,
        data.cargo_offer_id,
        data.kilos_reserved,
        data.shipment_description
    )

@router.get("/me", response_model=ReservationListResponse)
def list_my_reservations(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Reservas del usuario actual, más recientes primero"""
    return ReservationService(db).list_my_reservations(actor)

@router.get("", response_model=ReservationAdminListResponse)
def list_all_reservations(
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Todas las reservas con el nombre del cliente (solo admin)"""
    return ReservationService(db).list_all_reservations(actor)

@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Obtener una reserva (dueño o admin)"""
    return ReservationService(db).get_reservation(reservation_id, actor)

@router.patch("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: int,
    data: ReservationUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Modificar la descripción del envío (solo el dueño, mientras está pendiente)"""
    return ReservationService(db).update_description(reservation_id, actor, data.shipment_description)

@router.delete("/{reservation_id}", response_model=ReservationCancelResponse)
def cancel_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Cancelar una reserva

    - Dueño: solo mientras está en `pending_submission`
    - Admin: siempre

    Los kilos vuelven a la oferta y la reserva se elimina con su historial.
    """
    return ReservationService(db).cancel(reservation_id, actor)
