from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional
import logging

from app.core.auth.policies import Actor, authorize_read, authorize_write
from app.core.exceptions import (
    OfferNotFound, InvalidOfferCapacity, ConfirmationRequired, Unauthorized
)
from app.shared.database.models import CargoOffer
from .repository import OfferRepository
from .schemas import (
    CargoOfferCreate, CargoOfferUpdate, CargoOfferResponse,
    CargoOfferListResponse, CargoOfferDeleteResponse
)

logger = logging.getLogger(__name__)

class OfferService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = OfferRepository(db)

    # ===== LECTURA =====

    def list_active_offers(self, search: Optional[str] = None) -> CargoOfferListResponse:
        """Ofertas visibles para cualquiera: activas y con kilos disponibles"""
        offers = self.repository.get_active_offers(search)
        return CargoOfferListResponse(
            success=True,
            message="Ofertas disponibles",
            data=[CargoOfferResponse.model_validate(o) for o in offers],
            total=len(offers)
        )

    def list_all_offers(self, actor: Actor) -> CargoOfferListResponse:
        authorize_write(actor, None, CargoOffer)
        offers = self.repository.get_all_offers()
        return CargoOfferListResponse(
            success=True,
            message="Todas las ofertas",
            data=[CargoOfferResponse.model_validate(o) for o in offers],
            total=len(offers)
        )

    def get_offer(self, offer_id: int, actor: Actor) -> CargoOfferResponse:
        offer = self.repository.get_offer_by_id(offer_id)
        if not offer:
            raise OfferNotFound(offer_id)

        # Una oferta inactiva no existe para quien no es admin
        try:
            authorize_read(actor, offer)
        except Unauthorized:
            raise OfferNotFound(offer_id) from None

        return CargoOfferResponse.model_validate(offer)

    # ===== ESCRITURA (ADMIN) =====

    def create_offer(self, data: CargoOfferCreate, actor: Actor) -> CargoOfferResponse:
        authorize_write(actor, None, CargoOffer)

        offer_data = data.model_dump()
        self._validate_capacity(offer_data["total_kilos"], offer_data["available_kilos"])

        offer = self.repository.create_offer(offer_data)
        logger.info(
            f"✈️ Oferta {offer.id} creada: {offer.departure_city} → {offer.arrival_city} "
            f"({offer.departure_date}, {offer.total_kilos} kg)"
        )
        return CargoOfferResponse.model_validate(offer)

    def update_offer(self, offer_id: int, data: CargoOfferUpdate, actor: Actor) -> CargoOfferResponse:
        """
        Modificar una oferta.

        El resultado debe seguir cumpliendo 0 <= available_kilos <= total_kilos;
        si no, se rechaza con InvalidOfferCapacity sin corregir nada. La fila
        se lee bloqueada; si una cancelación concurrente la cambia igualmente
        y el CHECK de la base rechaza el resultado, también es InvalidOfferCapacity.
        """
        authorize_write(actor, None, CargoOffer)

        offer = self.repository.get_offer_for_update(offer_id)
        if not offer:
            self.db.rollback()
            raise OfferNotFound(offer_id)

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        total_kilos = update_data.get("total_kilos", offer.total_kilos)
        try:
            self._validate_capacity(total_kilos, update_data.get("available_kilos", offer.available_kilos))
        except InvalidOfferCapacity:
            self.db.rollback()
            raise

        try:
            offer = self.repository.update_offer(offer, update_data)
        except IntegrityError:
            self.db.rollback()
            available_kilos = self.repository.get_available_kilos(offer_id)
            logger.warning(
                f"⚠️ Oferta {offer_id} cambió durante la edición: "
                f"total {total_kilos} kg, disponibles {available_kilos} kg"
            )
            raise InvalidOfferCapacity(total_kilos, available_kilos) from None
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error actualizando oferta {offer_id}: {str(e)}")
            raise

        logger.info(f"✏️ Oferta {offer_id} actualizada: {', '.join(update_data) or 'sin cambios'}")
        return CargoOfferResponse.model_validate(offer)

    def delete_offer(self, offer_id: int, actor: Actor, confirm: bool = False) -> CargoOfferDeleteResponse:
        """Eliminar una oferta y, en cascada, sus reservas e historiales"""
        authorize_write(actor, None, CargoOffer)

        offer = self.repository.get_offer_by_id(offer_id)
        if not offer:
            raise OfferNotFound(offer_id)

        reservations_count = self.repository.count_reservations(offer_id)
        if not confirm:
            raise ConfirmationRequired(
                f"Eliminar la oferta {offer_id} borra {reservations_count} reserva(s). Reenvía con confirm=true",
                {"offer_id": offer_id, "reservations": reservations_count}
            )

        try:
            self.repository.delete_offer(offer)
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error eliminando oferta {offer_id}: {str(e)}")
            raise

        logger.warning(
            f"🗑️ Oferta {offer_id} eliminada por {actor.user_id} "
            f"junto con {reservations_count} reserva(s)"
        )
        return CargoOfferDeleteResponse(
            success=True,
            message="Oferta eliminada",
            offer_id=offer_id,
            reservations_removed=reservations_count
        )

    @staticmethod
    def _validate_capacity(total_kilos: int, available_kilos: int) -> None:
        if available_kilos < 0 or available_kilos > total_kilos:
            raise InvalidOfferCapacity(total_kilos, available_kilos)
