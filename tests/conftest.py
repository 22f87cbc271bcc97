# tests/conftest.py
import os
import tempfile
from datetime import date, timedelta
from decimal import Decimal

import pytest

# ============================================================
# Base de datos SQLite temporal: se configura ANTES de importar la app
# ============================================================
_TMP_DIR = tempfile.mkdtemp(prefix="kiloshare-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'kiloshare.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENFORCE_LINEAR_TRANSITIONS"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.config.database import SessionLocal, engine  # noqa: E402
from app.core.auth.policies import Actor  # noqa: E402
from app.core.auth.service import AuthService  # noqa: E402
from app.modules.roles.repository import RoleRepository  # noqa: E402
from app.shared.database.models import Base, AppRole, CargoOffer  # noqa: E402

USER_ID = "user-aminata"
OTHER_USER_ID = "user-moussa"
ADMIN_ID = "admin-fatou"


@pytest.fixture(autouse=True)
def _reset_database():
    """Tablas limpias para cada test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def bearer(user_id: str, **claims) -> dict:
    token = AuthService.create_access_token(user_id, **claims)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    return bearer(USER_ID, full_name="Aminata Diallo")


@pytest.fixture
def other_headers():
    return bearer(OTHER_USER_ID, full_name="Moussa Sow")


@pytest.fixture
def admin_headers(db):
    RoleRepository(db).grant(ADMIN_ID, AppRole.ADMIN)
    return bearer(ADMIN_ID, full_name="Fatou Ndiaye")


@pytest.fixture
def user_actor():
    return Actor(user_id=USER_ID, is_admin=False)


@pytest.fixture
def other_actor():
    return Actor(user_id=OTHER_USER_ID, is_admin=False)


@pytest.fixture
def admin_actor():
    return Actor(user_id=ADMIN_ID, is_admin=True)


@pytest.fixture
def make_offer(db):
    """Crear ofertas directamente en la base de datos"""

    def _make_offer(**overrides):
        data = {
            "departure_city": "Paris",
            "departure_country": "France",
            "departure_country_flag": "🇫🇷",
            "arrival_city": "Dakar",
            "arrival_country": "Sénégal",
            "arrival_country_flag": "🇸🇳",
            "departure_date": date.today() + timedelta(days=10),
            "total_kilos": 20,
            "price_per_kilo": Decimal("8000.00"),
            "is_active": True,
        }
        data.update(overrides)
        data.setdefault("available_kilos", data["total_kilos"])

        offer = CargoOffer(**data)
        db.add(offer)
        db.commit()
        db.refresh(offer)
        return offer

    return _make_offer


@pytest.fixture
def token_for():
    """Cabeceras Authorization para cualquier usuario"""
    return bearer
