from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from decimal import Decimal
from datetime import datetime

from app.config.settings import settings
from app.shared.database.models import ShipmentStatus
from app.shared.schemas.common import OfferRouteInfo

# ===== RESERVATION SCHEMAS =====

class ReservationCreate(BaseModel):
    """Schema para reservar kilos en una oferta"""
    cargo_offer_id: int = Field(..., gt=0, description="ID de la oferta")
    kilos_reserved: int = Field(..., ge=1, description="Kilos a reservar")
    shipment_description: Optional[str] = Field(None, max_length=2000, description="Descripción del envío")

    @field_validator('shipment_description')
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None

    class Config:
        json_schema_extra = {
            "example": {
                "cargo_offer_id": 1,
                "kilos_reserved": 5,
                "shipment_description": "Ropa y documentos"
            }
        }

class ReservationUpdate(BaseModel):
    """Schema para modificar la descripción de una reserva pendiente"""
    shipment_description: Optional[str] = Field(None, max_length=2000)

    @field_validator('shipment_description')
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None

class ReservationOfferInfo(OfferRouteInfo):
    price_per_kilo: Decimal

class ReservationResponse(BaseModel):
    id: int
    user_id: str
    cargo_offer_id: int
    kilos_reserved: int
    shipment_description: Optional[str] = None
    status: ShipmentStatus
    status_updated_at: datetime
    tracking_code: str
    total_price: Decimal
    currency: str = Field(default_factory=lambda: settings.currency)
    created_at: datetime
    cargo_offer: ReservationOfferInfo

    model_config = {"from_attributes": True}

class ReservationAdminResponse(ReservationResponse):
    """Reserva con el nombre del dueño (panel de administración)"""
    owner_full_name: Optional[str] = None

class ReservationListResponse(BaseModel):
    success: bool
    message: str
    data: List[ReservationResponse]
    total: int

class ReservationAdminListResponse(BaseModel):
    success: bool
    message: str
    data: List[ReservationAdminResponse]
    total: int

class ReservationCancelResponse(BaseModel):
    success: bool
    message: str
    reservation_id: int
    tracking_code: str
    kilos_restored: int
    available_kilos: int
