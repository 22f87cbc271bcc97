from sqlalchemy.orm import Session, joinedload
from sqlalchemy import update, delete, case, desc
from typing import List, Optional
import logging

from app.shared.database.models import CargoOffer, Reservation, ShipmentStatus, utcnow

logger = logging.getLogger(__name__)

class ReservationRepository:
    def __init__(self, db: Session):
        self.db = db

    # ===== CAPACIDAD DE LA OFERTA =====

    def get_offer_for_update(self, offer_id: int) -> Optional[CargoOffer]:
        """Leer la oferta bloqueando la fila hasta el commit"""
        return self.db.query(CargoOffer).filter(
            CargoOffer.id == offer_id
        ).with_for_update().populate_existing().first()  # ⚠️ LOCK para evitar race conditions

    def get_available_kilos(self, offer_id: int) -> int:
        return self.db.query(CargoOffer.available_kilos).filter(
            CargoOffer.id == offer_id
        ).scalar() or 0

    def decrement_available_kilos(self, offer_id: int, kilos: int) -> bool:
        """
        Descontar kilos solo si la oferta sigue activa y con capacidad suficiente.

        Comprobación y descuento son una sola sentencia UPDATE, de modo que dos
        reservas concurrentes nunca pueden superar la capacidad.

        Returns:
            bool: False si no había capacidad (ninguna fila afectada)
        """
        result = self.db.execute(
            update(CargoOffer)
            .where(
                CargoOffer.id == offer_id,
                CargoOffer.is_active.is_(True),
                CargoOffer.available_kilos >= kilos
            )
            .values(
                available_kilos=CargoOffer.available_kilos - kilos,
                updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def restore_available_kilos(self, offer_id: int, kilos: int) -> None:
        """Devolver kilos a la oferta sin superar nunca total_kilos"""
        restored = CargoOffer.available_kilos + kilos
        self.db.execute(
            update(CargoOffer)
            .where(CargoOffer.id == offer_id)
            .values(
                available_kilos=case(
                    (restored > CargoOffer.total_kilos, CargoOffer.total_kilos),
                    else_=restored
                ),
                updated_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )

    # ===== RESERVAS =====

    def tracking_code_exists(self, tracking_code: str) -> bool:
        return self.db.query(Reservation.id).filter(
            Reservation.tracking_code == tracking_code
        ).first() is not None

    def add_reservation(self, reservation: Reservation) -> Reservation:
        """Agregar la reserva a la transacción actual (sin commit)"""
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def get_by_id(self, reservation_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).options(
            joinedload(Reservation.cargo_offer)
        ).filter(Reservation.id == reservation_id).first()

    def get_by_id_for_update(self, reservation_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.id == reservation_id
        ).with_for_update().populate_existing().first()

    def get_by_tracking_code(self, tracking_code: str) -> Optional[Reservation]:
        return self.db.query(Reservation).options(
            joinedload(Reservation.cargo_offer)
        ).filter(Reservation.tracking_code == tracking_code).first()

    def get_by_user(self, user_id: str) -> List[Reservation]:
        """Reservas de un usuario, más recientes primero"""
        return self.db.query(Reservation).options(
            joinedload(Reservation.cargo_offer)
        ).filter(
            Reservation.user_id == user_id
        ).order_by(desc(Reservation.created_at), desc(Reservation.id)).all()

    def get_all(self) -> List[Reservation]:
        return self.db.query(Reservation).options(
            joinedload(Reservation.cargo_offer)
        ).order_by(desc(Reservation.created_at), desc(Reservation.id)).all()

    def delete_reservation(self, reservation_id: int, only_status: Optional[ShipmentStatus] = None) -> bool:
        """
        Eliminar la reserva (sin commit); su historial se elimina en cascada.

        Args:
            only_status: si se indica, solo se elimina si la reserva sigue en ese estado

        Returns:
            bool: False si ninguna fila coincidió (ya cancelada o cambió de estado)
        """
        stmt = delete(Reservation).where(Reservation.id == reservation_id)
        if only_status is not None:
            stmt = stmt.where(Reservation.status == only_status)

        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount == 1
