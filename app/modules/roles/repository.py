from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from app.shared.database.models import UserRole, AppRole

logger = logging.getLogger(__name__)

class RoleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_roles(self, user_id: str) -> List[UserRole]:
        """Roles de un usuario"""
        return self.db.query(UserRole).filter(
            UserRole.user_id == user_id
        ).order_by(UserRole.id).all()

    def get_role(self, user_id: str, role: AppRole) -> Optional[UserRole]:
        return self.db.query(UserRole).filter(
            UserRole.user_id == user_id,
            UserRole.role == role
        ).first()

    def get_all_roles(self) -> List[UserRole]:
        return self.db.query(UserRole).order_by(UserRole.user_id, UserRole.id).all()

    def has_role(self, user_id: str, role: AppRole) -> bool:
        return self.get_role(user_id, role) is not None

    def ensure_default_role(self, user_id: str) -> bool:
        """
        Asignar el rol 'user' a un usuario que aún no tiene roles.

        Returns:
            bool: True si el usuario era nuevo
        """
        if self.db.query(UserRole.id).filter(UserRole.user_id == user_id).first():
            return False

        try:
            self.db.add(UserRole(user_id=user_id, role=AppRole.USER))
            self.db.commit()
        except IntegrityError:
            # Otra petición concurrente ya lo registró
            self.db.rollback()
            return False

        logger.info(f"👤 Nuevo usuario registrado con rol 'user': {user_id}")
        return True

    def grant(self, user_id: str, role: AppRole) -> UserRole:
        existing = self.get_role(user_id, role)
        if existing:
            return existing

        user_role = UserRole(user_id=user_id, role=role)
        self.db.add(user_role)
        self.db.commit()
        self.db.refresh(user_role)
        return user_role

    def revoke(self, user_id: str, role: AppRole) -> bool:
        existing = self.get_role(user_id, role)
        if not existing:
            return False

        self.db.delete(existing)
        self.db.commit()
        return True
