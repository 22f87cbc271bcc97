from sqlalchemy.orm import Session
from typing import Optional, List
import logging

from app.config.settings import settings
from app.core.auth.policies import Actor, authorize_read, require_admin
from app.core.exceptions import InvalidTransition, ReservationNotFound
from app.modules.reservations.repository import ReservationRepository
from app.shared.database.models import Reservation, ShipmentStatus, StatusHistoryEntry, utcnow
from app.shared.schemas.common import OfferRouteInfo
from app.shared.services.tracking_code_service import TrackingCodeIssuer, tracking_code_issuer
from .repository import StatusHistoryRepository
from .schemas import (
    STATUS_LABELS, TimelineStep, TrackedShipment, TrackingResponse,
    TransitionResponse, StatusHistoryResponse, StatusHistoryEntryResponse
)

logger = logging.getLogger(__name__)


def build_timeline(current: ShipmentStatus) -> List[TimelineStep]:
    """Línea de tiempo de los cinco estados respecto al estado actual"""
    steps = []
    for status in ShipmentStatus.ordered():
        if status.position < current.position:
            state = "completed"
        elif status == current:
            state = "current"
        else:
            state = "pending"
        steps.append(TimelineStep(status=status, label=STATUS_LABELS[status], state=state))
    return steps


class StatusTrackerService:
    """
    Máquina de estados del envío.

    Cada cambio real de estado agrega una entrada al historial y actualiza
    `status_updated_at` en la misma transacción.
    """

    def __init__(
        self,
        db: Session,
        enforce_linear: Optional[bool] = None,
        issuer: Optional[TrackingCodeIssuer] = None
    ):
        self.db = db
        self.issuer = issuer or tracking_code_issuer
        self.reservations = ReservationRepository(db)
        self.history = StatusHistoryRepository(db)
        self.enforce_linear = (
            settings.enforce_linear_transitions if enforce_linear is None else enforce_linear
        )

    def transition(
        self,
        reservation_id: int,
        new_status: ShipmentStatus,
        actor: Actor,
        notes: Optional[str] = None
    ) -> TransitionResponse:
        """
        Cambiar el estado de una reserva (solo admin)

        - Mismo estado: no hace nada (sin entrada de historial)
        - Con transiciones lineales activas, solo se acepta el estado siguiente
          y un envío entregado ya no cambia

        Raises:
            Unauthorized, ReservationNotFound, InvalidTransition
        """
        require_admin(actor)
        new_status = ShipmentStatus(new_status)

        reservation = self.reservations.get_by_id_for_update(reservation_id)
        if not reservation:
            raise ReservationNotFound(reservation_id)

        previous = ShipmentStatus(reservation.status)

        if new_status == previous:
            self.db.rollback()
            return self._transition_response(reservation, previous, changed=False)

        expected = None if previous.is_terminal else previous.next_status
        if self.enforce_linear and new_status != expected:
            self.db.rollback()
            raise InvalidTransition(previous.value, new_status.value, expected.value if expected else None)

        try:
            reservation.status = new_status
            reservation.status_updated_at = utcnow()
            self.history.add_entry(reservation.id, new_status, notes)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error cambiando estado de reserva {reservation_id}: {str(e)}")
            raise

        self.db.refresh(reservation)
        logger.info(
            f"🚚 {reservation.tracking_code}: {previous.value} → {new_status.value} "
            f"(por {actor.user_id})"
        )
        return self._transition_response(reservation, previous, changed=True)

    def get_by_tracking_code(self, code: str) -> TrackingResponse:
        """
        Consulta pública por código; un código inexistente no es un error.

        Un código con formato inválido se responde igual que uno inexistente,
        sin consultar la base.
        """
        normalized = self.issuer.normalize(code)
        reservation = None
        if self.issuer.is_valid(normalized):
            reservation = self.reservations.get_by_tracking_code(normalized)

        if not reservation:
            return TrackingResponse(
                found=False,
                message="No se encontró ningún envío con ese código",
                tracking_code=normalized
            )

        status = ShipmentStatus(reservation.status)
        return TrackingResponse(
            found=True,
            message="Envío encontrado",
            tracking_code=reservation.tracking_code,
            shipment=TrackedShipment(
                tracking_code=reservation.tracking_code,
                kilos_reserved=reservation.kilos_reserved,
                shipment_description=reservation.shipment_description,
                status=status,
                status_label=STATUS_LABELS[status],
                status_updated_at=reservation.status_updated_at,
                created_at=reservation.created_at,
                cargo_offer=OfferRouteInfo.model_validate(reservation.cargo_offer),
                timeline=build_timeline(status)
            )
        )

    def list_history(self, reservation_id: int, actor: Actor) -> StatusHistoryResponse:
        reservation = self.reservations.get_by_id(reservation_id)
        if not reservation:
            raise ReservationNotFound(reservation_id)
        authorize_read(actor, reservation, StatusHistoryEntry)

        entries = self.history.get_for_reservation(reservation_id)
        return StatusHistoryResponse(
            success=True,
            message="Historial de estados",
            reservation_id=reservation.id,
            tracking_code=reservation.tracking_code,
            data=[StatusHistoryEntryResponse.model_validate(e) for e in entries],
            total=len(entries)
        )

    def _transition_response(self, reservation: Reservation, previous: ShipmentStatus, changed: bool) -> TransitionResponse:
        return TransitionResponse(
            success=True,
            message="Estado actualizado" if changed else "El envío ya tiene ese estado",
            reservation_id=reservation.id,
            tracking_code=reservation.tracking_code,
            previous_status=previous,
            status=reservation.status,
            status_updated_at=reservation.status_updated_at,
            changed=changed
        )
