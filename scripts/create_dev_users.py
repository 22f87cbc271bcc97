"""
Script para crear usuarios de desarrollo y emitir sus tokens

Los usuarios reales vienen del proveedor de identidad; en local se crean
aquí su rol, su perfil y un token firmado con SECRET_KEY.

Ejecutar desde la raíz del proyecto: python -m scripts.create_dev_users
"""
from datetime import timedelta

from app.config.database import SessionLocal, engine
from app.core.auth.service import AuthService
from app.modules.roles.repository import RoleRepository
from app.modules.profiles.repository import ProfileRepository
from app.shared.database.models import Base, AppRole

DEV_USERS = [
    {"user_id": "dev-admin", "full_name": "Admin KiloShare", "role": AppRole.ADMIN},
    {"user_id": "dev-client", "full_name": "Aminata Diallo", "role": AppRole.USER},
]

def create_dev_users():
    """Crear roles y perfiles de desarrollo e imprimir un token por usuario"""

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        roles = RoleRepository(db)
        profiles = ProfileRepository(db)

        for user_data in DEV_USERS:
            roles.ensure_default_role(user_data["user_id"])
            roles.grant(user_data["user_id"], user_data["role"])
            profiles.ensure_profile(user_data["user_id"], user_data["full_name"])
            print(f"✅ Usuario listo: {user_data['user_id']} ({user_data['role'].value})")

        print("\n📋 Tokens de desarrollo (válidos 7 días):")
        for user_data in DEV_USERS:
            token = AuthService.create_access_token(
                user_data["user_id"],
                expires_delta=timedelta(days=7),
                full_name=user_data["full_name"]
            )
            print(f"   👤 {user_data['role'].value.upper()}: {token}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error creando usuarios: {e}")
        raise

    finally:
        db.close()

if __name__ == "__main__":
    create_dev_users()
