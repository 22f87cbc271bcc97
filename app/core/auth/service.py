from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from app.config.settings import settings

class AuthService:
    """Verificación de los tokens emitidos por el proveedor de identidad"""

    @staticmethod
    def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
        """Crear token de acceso (herramientas de desarrollo y pruebas)"""
        to_encode = dict(claims)
        to_encode["sub"] = str(user_id)

        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
        to_encode.update({"exp": expire})

        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def verify_token(token: str) -> Optional[dict]:
        """Verificar y decodificar token"""
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
            return payload
        except JWTError:
            return None
