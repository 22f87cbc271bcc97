from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Dict, Iterable, Optional

from app.shared.database.models import Profile

class ProfileRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.user_id == user_id).first()

    def get_full_names(self, user_ids: Iterable[str]) -> Dict[str, Optional[str]]:
        """Nombres de varios usuarios en una sola consulta"""
        ids = set(user_ids)
        if not ids:
            return {}
        rows = self.db.query(Profile.user_id, Profile.full_name).filter(
            Profile.user_id.in_(ids)
        ).all()
        return {user_id: full_name for user_id, full_name in rows}

    def ensure_profile(self, user_id: str, full_name: Optional[str] = None) -> Profile:
        profile = self.get_profile(user_id)
        if profile:
            return profile

        profile = Profile(user_id=user_id, full_name=full_name)
        try:
            self.db.add(profile)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return self.get_profile(user_id)

        self.db.refresh(profile)
        return profile

    def update_profile(self, profile: Profile, update_data: dict) -> Profile:
        for key, value in update_data.items():
            setattr(profile, key, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile
