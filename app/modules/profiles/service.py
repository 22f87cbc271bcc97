from sqlalchemy.orm import Session
import logging

from app.core.auth.policies import Actor, authorize_read, authorize_write
from .repository import ProfileRepository
from .schemas import ProfileUpdate, ProfileResponse

logger = logging.getLogger(__name__)

class ProfileService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = ProfileRepository(db)

    def get_my_profile(self, actor: Actor) -> ProfileResponse:
        profile = self.repository.ensure_profile(actor.user_id)
        authorize_read(actor, profile)
        return ProfileResponse.model_validate(profile)

    def update_my_profile(self, actor: Actor, data: ProfileUpdate) -> ProfileResponse:
        profile = self.repository.ensure_profile(actor.user_id)
        authorize_write(actor, profile)

        update_data = data.model_dump(exclude_unset=True)
        profile = self.repository.update_profile(profile, update_data)

        logger.info(f"📝 Perfil actualizado: {actor.user_id} ({', '.join(update_data) or 'sin cambios'})")
        return ProfileResponse.model_validate(profile)
