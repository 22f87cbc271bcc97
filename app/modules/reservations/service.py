from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
import logging

from app.core.auth.policies import Actor, authorize_read, authorize_write, require_admin
from app.core.exceptions import (
    KiloShareError, ValidationFailed, Unauthorized,
    OfferNotFound, OfferInactive, CapacityExceeded, ReservationNotFound, IssuerExhausted
)
from app.modules.profiles.repository import ProfileRepository
from app.modules.tracking.repository import StatusHistoryRepository
from app.shared.database.models import Reservation, ShipmentStatus, utcnow
from app.shared.services.tracking_code_service import TrackingCodeIssuer, tracking_code_issuer
from .repository import ReservationRepository
from .schemas import (
    ReservationResponse, ReservationAdminResponse, ReservationListResponse,
    ReservationAdminListResponse, ReservationCancelResponse
)

logger = logging.getLogger(__name__)

class ReservationService:
    """
    Motor de reservas.

    Único componente que crea reservas y que modifica `available_kilos`
    de una oferta.
    """

    def __init__(self, db: Session, issuer: Optional[TrackingCodeIssuer] = None):
        self.db = db
        self.repository = ReservationRepository(db)
        self.history = StatusHistoryRepository(db)
        self.issuer = issuer or tracking_code_issuer

    # ===== RESERVAR =====

    def reserve(
        self,
        actor: Actor,
        offer_id: int,
        kilos: int,
        description: Optional[str] = None
    ) -> Reservation:
        """
        Reservar kilos en una oferta, en una única transacción:

        1. Bloquear la oferta y validar estado y capacidad
        2. Descontar kilos con UPDATE condicionado (re-verifica la capacidad)
        3. Emitir el código de seguimiento
        4. Crear la reserva en estado inicial
        5. Registrar la primera entrada del historial

        Cualquier error revierte todos los pasos.

        Raises:
            OfferNotFound, OfferInactive, CapacityExceeded, IssuerExhausted
        """
        if not actor.is_authenticated:
            raise Unauthorized("Debes iniciar sesión para reservar")
        if kilos is None or kilos < 1:
            raise ValidationFailed("Debes reservar al menos 1 kg", {"requested": kilos})

        try:
            # ========== 1. OFERTA (CON LOCK) ==========
            offer = self.repository.get_offer_for_update(offer_id)
            if not offer:
                raise OfferNotFound(offer_id)
            if not offer.is_active:
                raise OfferInactive(offer_id)
            if kilos > offer.available_kilos:
                raise CapacityExceeded(offer_id, offer.available_kilos, kilos)

            # ========== 2. DESCONTAR KILOS ==========
            if not self.repository.decrement_available_kilos(offer_id, kilos):
                available = self.repository.get_available_kilos(offer_id)
                raise CapacityExceeded(offer_id, available, kilos)

            # ========== 3-4. CÓDIGO DE SEGUIMIENTO + RESERVA ==========
            initial_status = ShipmentStatus.initial()
            reservation = self._insert_with_unique_code(actor, offer_id, kilos, description, initial_status)

            # ========== 5. HISTORIAL ==========
            self.history.add_entry(reservation.id, initial_status)

            self.db.commit()

        except KiloShareError as e:
            self.db.rollback()
            logger.info(f"🚫 Reserva rechazada ({e.error_code}): {e.message}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error crítico creando reserva en oferta {offer_id}: {str(e)}")
            raise

        self.db.refresh(reservation)
        logger.info(
            f"📦 Reserva {reservation.id} creada: {kilos} kg en oferta {offer_id} "
            f"→ {reservation.tracking_code}"
        )
        return reservation

    def _insert_with_unique_code(
        self,
        actor: Actor,
        offer_id: int,
        kilos: int,
        description: Optional[str],
        status: ShipmentStatus
    ) -> Reservation:
        """
        Insertar la reserva con un código nuevo.

        Un código emitido al mismo tiempo por otra transacción aún no
        confirmada no es visible para el emisor; el índice único lo rechaza
        y se reintenta con otro código dentro del mismo límite de intentos.
        """
        for attempt in range(1, self.issuer.max_attempts + 1):
            tracking_code = self.issuer.issue(self.repository.tracking_code_exists)
            try:
                with self.db.begin_nested():
                    return self.repository.add_reservation(Reservation(
                        user_id=actor.user_id,
                        cargo_offer_id=offer_id,
                        kilos_reserved=kilos,
                        shipment_description=description,
                        status=status,
                        status_updated_at=utcnow(),
                        tracking_code=tracking_code
                    ))
            except IntegrityError:
                logger.warning(
                    f"⚠️ Código {tracking_code} rechazado por el índice único "
                    f"({attempt}/{self.issuer.max_attempts})"
                )

        raise IssuerExhausted(self.issuer.max_attempts)

    # ===== CANCELAR =====

    def cancel(self, reservation_id: int, actor: Actor) -> ReservationCancelResponse:
        """
        Cancelar una reserva y devolver sus kilos a la oferta.

        Permitido al dueño mientras está pendiente y a un admin siempre.
        La fila se elimina junto con su historial. Los kilos solo se devuelven
        si esta transacción es la que elimina la fila, de modo que dos
        cancelaciones simultáneas nunca devuelven la capacidad dos veces.
        """
        try:
            # ========== 1. RESERVA (CON LOCK) ==========
            reservation = self.repository.get_by_id_for_update(reservation_id)
            if not reservation:
                raise ReservationNotFound(reservation_id)

            if actor.owns(reservation.user_id) and not actor.is_admin and not reservation.is_pending:
                raise Unauthorized("Solo se pueden cancelar reservas pendientes de entrega")
            authorize_write(actor, reservation)

            offer_id = reservation.cargo_offer_id
            kilos = reservation.kilos_reserved
            tracking_code = reservation.tracking_code

            # ========== 2. ELIMINAR ==========
            # El dueño solo elimina si sigue pendiente al momento de escribir
            only_status = None if actor.is_admin else ShipmentStatus.initial()
            if not self.repository.delete_reservation(reservation_id, only_status):
                if only_status is not None and self.repository.get_by_id(reservation_id):
                    raise Unauthorized("Solo se pueden cancelar reservas pendientes de entrega")
                raise ReservationNotFound(reservation_id)
            self.db.expunge(reservation)

            # ========== 3. DEVOLVER KILOS ==========
            self.repository.restore_available_kilos(offer_id, kilos)

            self.db.commit()

        except KiloShareError as e:
            self.db.rollback()
            logger.info(f"🚫 Cancelación rechazada ({e.error_code}): {e.message}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error cancelando reserva {reservation_id}: {str(e)}")
            raise

        available = self.repository.get_available_kilos(offer_id)
        logger.info(
            f"↩️ Reserva {reservation_id} ({tracking_code}) cancelada por {actor.user_id}: "
            f"+{kilos} kg a oferta {offer_id}"
        )
        return ReservationCancelResponse(
            success=True,
            message="Reserva cancelada",
            reservation_id=reservation_id,
            tracking_code=tracking_code,
            kilos_restored=kilos,
            available_kilos=available
        )

    # ===== LECTURA =====

    def get_reservation(self, reservation_id: int, actor: Actor) -> Reservation:
        reservation = self.repository.get_by_id(reservation_id)
        if not reservation:
            raise ReservationNotFound(reservation_id)
        authorize_read(actor, reservation)
        return reservation

    def list_my_reservations(self, actor: Actor) -> ReservationListResponse:
        if not actor.is_authenticated:
            raise Unauthorized("Debes iniciar sesión")

        reservations = self.repository.get_by_user(actor.user_id)
        return ReservationListResponse(
            success=True,
            message="Mis reservas",
            data=[ReservationResponse.model_validate(r) for r in reservations],
            total=len(reservations)
        )

    def list_all_reservations(self, actor: Actor) -> ReservationAdminListResponse:
        require_admin(actor)

        reservations = self.repository.get_all()
        names = ProfileRepository(self.db).get_full_names(r.user_id for r in reservations)

        data = []
        for reservation in reservations:
            item = ReservationAdminResponse.model_validate(reservation)
            item.owner_full_name = names.get(reservation.user_id)
            data.append(item)

        return ReservationAdminListResponse(
            success=True,
            message="Todas las reservas",
            data=data,
            total=len(data)
        )

    # ===== MODIFICAR =====

    def update_description(self, reservation_id: int, actor: Actor, description: Optional[str]) -> Reservation:
        """
        Modificar la descripción del envío.

        Solo el dueño y solo mientras está pendiente: los administradores
        únicamente cambian el estado, a través del seguimiento.
        """
        reservation = self.repository.get_by_id(reservation_id)
        if not reservation:
            raise ReservationNotFound(reservation_id)
        if not actor.owns(reservation.user_id):
            authorize_read(actor, reservation)
            raise Unauthorized("Los administradores solo pueden cambiar el estado del envío")
        authorize_write(actor, reservation)

        reservation.shipment_description = description
        self.db.commit()
        self.db.refresh(reservation)
        return reservation
