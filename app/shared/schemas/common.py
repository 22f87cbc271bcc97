# app/shared/schemas/common.py
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import date, datetime

class BaseResponse(BaseModel):
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)

class ErrorResponse(BaseResponse):
    success: bool = False
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

class OfferRouteInfo(BaseModel):
    """Trayecto de una oferta, tal como se muestra junto a una reserva"""
    departure_city: str
    departure_country: str
    departure_country_flag: str
    arrival_city: str
    arrival_country: str
    arrival_country_flag: str
    departure_date: date

    model_config = {"from_attributes": True}
