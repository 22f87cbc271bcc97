from pydantic import BaseModel, Field
from typing import List, Optional

from app.shared.database.models import AppRole

class ActorResponse(BaseModel):
    """Schema para la identidad con la que se ejecutan las peticiones"""
    user_id: str = Field(..., description="ID del usuario en el proveedor de identidad")
    is_admin: bool
    roles: List[AppRole]
    full_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "5f0c7a2e-3b1d-4c55-9a6e-1d2f3a4b5c6d",
                "is_admin": False,
                "roles": ["user"],
                "full_name": "Aminata Diallo"
            }
        }
