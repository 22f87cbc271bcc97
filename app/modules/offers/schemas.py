from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from decimal import Decimal
from datetime import date, datetime

# ===== CARGO OFFER SCHEMAS =====

class CargoOfferCreate(BaseModel):
    """Schema para publicar una oferta de kilos (solo admin)"""
    departure_city: str = Field(..., min_length=1, max_length=255, description="Ciudad de salida")
    departure_country: str = Field(..., min_length=1, max_length=255, description="País de salida")
    departure_country_flag: str = Field(..., min_length=1, max_length=16, description="Bandera del país de salida")
    arrival_city: str = Field(..., min_length=1, max_length=255, description="Ciudad de llegada")
    arrival_country: str = Field(..., min_length=1, max_length=255, description="País de llegada")
    arrival_country_flag: str = Field(..., min_length=1, max_length=16, description="Bandera del país de llegada")
    departure_date: date = Field(..., description="Fecha de salida")
    total_kilos: int = Field(..., gt=0, description="Capacidad total en kg")
    available_kilos: Optional[int] = Field(None, ge=0, description="Kilos disponibles (por defecto, el total)")
    price_per_kilo: Decimal = Field(..., gt=0, description="Precio por kg")
    is_active: bool = True

    @field_validator('departure_city', 'departure_country', 'arrival_city', 'arrival_country')
    @classmethod
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError('El campo no puede estar vacío')
        return v.strip()

    @model_validator(mode='after')
    def default_available_kilos(self):
        if self.available_kilos is None:
            self.available_kilos = self.total_kilos
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "departure_city": "Paris",
                "departure_country": "France",
                "departure_country_flag": "🇫🇷",
                "arrival_city": "Dakar",
                "arrival_country": "Sénégal",
                "arrival_country_flag": "🇸🇳",
                "departure_date": "2026-11-15",
                "total_kilos": 50,
                "price_per_kilo": 8000
            }
        }

class CargoOfferUpdate(BaseModel):
    """Schema para modificar una oferta (cualquier campo)"""
    departure_city: Optional[str] = Field(None, min_length=1, max_length=255)
    departure_country: Optional[str] = Field(None, min_length=1, max_length=255)
    departure_country_flag: Optional[str] = Field(None, min_length=1, max_length=16)
    arrival_city: Optional[str] = Field(None, min_length=1, max_length=255)
    arrival_country: Optional[str] = Field(None, min_length=1, max_length=255)
    arrival_country_flag: Optional[str] = Field(None, min_length=1, max_length=16)
    departure_date: Optional[date] = None
    total_kilos: Optional[int] = Field(None, ge=0)
    available_kilos: Optional[int] = Field(None, ge=0)
    price_per_kilo: Optional[Decimal] = Field(None, gt=0)
    is_active: Optional[bool] = None

class CargoOfferResponse(BaseModel):
    id: int
    departure_city: str
    departure_country: str
    departure_country_flag: str
    arrival_city: str
    arrival_country: str
    arrival_country_flag: str
    departure_date: date
    total_kilos: int
    available_kilos: int
    price_per_kilo: Decimal
    is_active: bool
    is_sold_out: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

class CargoOfferListResponse(BaseModel):
    success: bool
    message: str
    data: List[CargoOfferResponse]
    total: int

class CargoOfferDeleteResponse(BaseModel):
    success: bool
    message: str
    offer_id: int
    reservations_removed: int
