from sqlalchemy.orm import Session
from typing import List, Optional

from app.shared.database.models import StatusHistoryEntry, ShipmentStatus, utcnow

class StatusHistoryRepository:
    """Historial de estados: solo inserción y lectura"""

    def __init__(self, db: Session):
        self.db = db

    def add_entry(self, reservation_id: int, status: ShipmentStatus, notes: Optional[str] = None) -> StatusHistoryEntry:
        """Agregar una entrada a la transacción actual (sin commit)"""
        entry = StatusHistoryEntry(
            reservation_id=reservation_id,
            status=status,
            notes=notes,
            created_at=utcnow()
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_for_reservation(self, reservation_id: int) -> List[StatusHistoryEntry]:
        return self.db.query(StatusHistoryEntry).filter(
            StatusHistoryEntry.reservation_id == reservation_id
        ).order_by(StatusHistoryEntry.created_at, StatusHistoryEntry.id).all()
