# app/modules/tracking/router.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import get_current_actor, get_admin_actor
from app.core.auth.policies import Actor
from .service import StatusTrackerService
from .schemas import TransitionRequest, TransitionResponse, StatusHistoryResponse, TrackingResponse

router = APIRouter()

@router.post("/reservations/{reservation_id}/status", response_model=TransitionResponse)
def change_status(
    reservation_id: int,
    data: TransitionRequest,
    actor: Actor = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """
    Cambiar el estado de un envío

    **Permisos requeridos:** Solo administradores

    - Si el estado es el mismo no se registra nada (`changed: false`)
    - Cada cambio agrega una entrada al historial con las notas opcionales
    """
    return StatusTrackerService(db).transition(reservation_id, data.status, actor, data.notes)

@router.get("/reservations/{reservation_id}/history", response_model=StatusHistoryResponse)
def get_status_history(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Historial de estados de una reserva (dueño o admin), del más antiguo al más reciente"""
    return StatusTrackerService(db).list_history(reservation_id, actor)

@router.get("/{tracking_code}", response_model=TrackingResponse, responses={404: {"model": TrackingResponse}})
def track_shipment(
    tracking_code: str,
    db: Session = Depends(get_db)
):
    """
    Seguir un envío por su código

    **Acceso:** público, sin autenticación

    - No distingue mayúsculas ni espacios alrededor del código
    - Devuelve el trayecto, el estado actual y la línea de tiempo
    - Nunca expone datos del cliente
    """
    result = StatusTrackerService(db).get_by_tracking_code(tracking_code)
    if not result.found:
        return JSONResponse(status_code=404, content=result.model_dump(mode="json"))
    return result
