from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

class ProfileUpdate(BaseModel):
    """Schema para actualizar el perfil propio"""
    full_name: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=50)
    id_document: Optional[str] = Field(None, max_length=100)

    @field_validator('full_name', 'phone_number', 'id_document')
    @classmethod
    def blank_to_none(cls, v):
        # Cadenas vacías se guardan como null
        if v is None:
            return None
        v = v.strip()
        return v or None

class ProfileResponse(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    id_document: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
