from pydantic import BaseModel, Field
from typing import List
from datetime import datetime

from app.shared.database.models import AppRole

class RoleGrant(BaseModel):
    """Schema para asignar un rol (solo admin)"""
    user_id: str = Field(..., min_length=1, max_length=64, description="ID del usuario en el proveedor de identidad")
    role: AppRole = Field(..., description="Rol a asignar")

class UserRoleResponse(BaseModel):
    id: int
    user_id: str
    role: AppRole
    created_at: datetime

    model_config = {"from_attributes": True}

class MyRolesResponse(BaseModel):
    user_id: str
    roles: List[AppRole]
    is_admin: bool
