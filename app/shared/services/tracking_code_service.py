# app/shared/services/tracking_code_service.py
import re
import secrets
import string
import logging
from typing import Callable, Optional

from app.config.settings import settings
from app.core.exceptions import IssuerExhausted

logger = logging.getLogger(__name__)

TRACKING_ALPHABET = string.ascii_uppercase + string.digits


class TrackingCodeIssuer:
    """
    Emisor de códigos de seguimiento públicos (KG-XXXXXXXX).

    Cada símbolo se elige de forma uniforme entre A-Z y 0-9 con `secrets`.
    Si el código ya existe se sortea otro; tras `max_attempts` colisiones
    se lanza IssuerExhausted. Los códigos nunca se reutilizan.
    """

    def __init__(
        self,
        prefix: Optional[str] = None,
        length: Optional[int] = None,
        max_attempts: Optional[int] = None,
        choice: Callable[[str], str] = secrets.choice
    ):
        self.prefix = prefix if prefix is not None else settings.tracking_code_prefix
        self.length = length if length is not None else settings.tracking_code_length
        self.max_attempts = max_attempts if max_attempts is not None else settings.tracking_code_max_attempts
        self._choice = choice
        self._pattern = re.compile(rf"^{re.escape(self.prefix)}[A-Z0-9]{{{self.length}}}$")

    def generate(self) -> str:
        return self.prefix + "".join(self._choice(TRACKING_ALPHABET) for _ in range(self.length))

    def issue(self, exists: Callable[[str], bool]) -> str:
        """
        Emitir un código que no exista todavía

        Args:
            exists: función que indica si un código ya está asignado
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate()
            if not exists(code):
                return code
            logger.warning(f"⚠️ Colisión de código de seguimiento ({attempt}/{self.max_attempts}): {code}")

        raise IssuerExhausted(self.max_attempts)

    @staticmethod
    def normalize(code: str) -> str:
        return (code or "").strip().upper()

    def is_valid(self, code: str) -> bool:
        return bool(self._pattern.match(code or ""))


tracking_code_issuer = TrackingCodeIssuer()
