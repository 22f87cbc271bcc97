from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

from app.shared.database.models import ShipmentStatus
from app.shared.schemas.common import OfferRouteInfo

STATUS_LABELS = {
    ShipmentStatus.PENDING_SUBMISSION: "En espera de depósito",
    ShipmentStatus.RECEIVED_AT_ORIGIN: "Recibido en origen",
    ShipmentStatus.IN_TRANSIT: "En tránsito",
    ShipmentStatus.ARRIVED_AT_DESTINATION: "Llegado a destino",
    ShipmentStatus.DELIVERED: "Entregado",
}

# ===== REQUEST =====

class TransitionRequest(BaseModel):
    """Schema para cambiar el estado de una reserva"""
    status: ShipmentStatus = Field(..., description="Nuevo estado del envío")
    notes: Optional[str] = Field(None, max_length=1000, description="Notas para el historial")

    @field_validator('notes')
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None

    class Config:
        json_schema_extra = {
            "example": {
                "status": "received_at_origin",
                "notes": "Paquete recibido en la agencia de París"
            }
        }

# ===== RESPONSES =====

class StatusHistoryEntryResponse(BaseModel):
    id: int
    reservation_id: int
    status: ShipmentStatus
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}

class StatusHistoryResponse(BaseModel):
    success: bool
    message: str
    reservation_id: int
    tracking_code: str
    data: List[StatusHistoryEntryResponse]
    total: int

class TransitionResponse(BaseModel):
    success: bool
    message: str
    reservation_id: int
    tracking_code: str
    previous_status: ShipmentStatus
    status: ShipmentStatus
    status_updated_at: datetime
    changed: bool

class TimelineStep(BaseModel):
    """Paso de la línea de tiempo: completed | current | pending"""
    status: ShipmentStatus
    label: str
    state: str

class TrackedShipment(BaseModel):
    """Vista pública de un envío: sin identidad ni contacto del cliente"""
    tracking_code: str
    kilos_reserved: int
    shipment_description: Optional[str] = None
    status: ShipmentStatus
    status_label: str
    status_updated_at: datetime
    created_at: datetime
    cargo_offer: OfferRouteInfo
    timeline: List[TimelineStep]

class TrackingResponse(BaseModel):
    found: bool
    message: str
    tracking_code: str
    shipment: Optional[TrackedShipment] = None
