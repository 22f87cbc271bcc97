from sqlalchemy.orm import Session
from sqlalchemy import or_, func, desc
from typing import List, Optional

from app.shared.database.models import CargoOffer, Reservation

class OfferRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_offer(self, offer_data: dict) -> CargoOffer:
        """Crear una nueva oferta"""
        offer = CargoOffer(**offer_data)
        self.db.add(offer)
        self.db.commit()
        self.db.refresh(offer)
        return offer

    def get_offer_by_id(self, offer_id: int) -> Optional[CargoOffer]:
        return self.db.query(CargoOffer).filter(CargoOffer.id == offer_id).first()

    def get_offer_for_update(self, offer_id: int) -> Optional[CargoOffer]:
        """Leer la oferta bloqueando la fila hasta el commit"""
        return self.db.query(CargoOffer).filter(
            CargoOffer.id == offer_id
        ).with_for_update().populate_existing().first()

    def get_available_kilos(self, offer_id: int) -> int:
        return self.db.query(CargoOffer.available_kilos).filter(
            CargoOffer.id == offer_id
        ).scalar() or 0

    def get_active_offers(self, search: Optional[str] = None) -> List[CargoOffer]:
        """Ofertas activas con kilos disponibles, por fecha de salida ascendente"""
        query = self.db.query(CargoOffer).filter(
            CargoOffer.is_active.is_(True),
            CargoOffer.available_kilos > 0
        )

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    CargoOffer.departure_city.ilike(pattern),
                    CargoOffer.departure_country.ilike(pattern),
                    CargoOffer.arrival_city.ilike(pattern),
                    CargoOffer.arrival_country.ilike(pattern)
                )
            )

        return query.order_by(CargoOffer.departure_date, CargoOffer.id).all()

    def get_all_offers(self) -> List[CargoOffer]:
        """Todas las ofertas, incluidas inactivas y agotadas"""
        return self.db.query(CargoOffer).order_by(
            desc(CargoOffer.departure_date), desc(CargoOffer.id)
        ).all()

    def update_offer(self, offer: CargoOffer, update_data: dict) -> CargoOffer:
        for key, value in update_data.items():
            setattr(offer, key, value)
        self.db.commit()
        self.db.refresh(offer)
        return offer

    def count_reservations(self, offer_id: int) -> int:
        return self.db.query(func.count(Reservation.id)).filter(
            Reservation.cargo_offer_id == offer_id
        ).scalar() or 0

    def delete_offer(self, offer: CargoOffer) -> None:
        """Eliminar la oferta; reservas e historial se eliminan en cascada"""
        self.db.delete(offer)
        self.db.commit()
