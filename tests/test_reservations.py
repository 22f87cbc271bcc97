import re
import threading
from decimal import Decimal

import pytest

from app.config.database import SessionLocal
from app.core.auth.policies import Actor
from app.core.exceptions import (
    CapacityExceeded, OfferInactive, OfferNotFound, ValidationFailed,
    Unauthorized, IssuerExhausted, ReservationNotFound
)
from app.modules.reservations.repository import ReservationRepository
from app.modules.reservations.service import ReservationService
from app.modules.tracking.service import StatusTrackerService
from app.shared.database.models import CargoOffer, Reservation, StatusHistoryEntry, ShipmentStatus
from app.shared.services.tracking_code_service import TrackingCodeIssuer

CODE_PATTERN = re.compile(r"^KG-[A-Z0-9]{8}$")


def available_kilos(offer_id):
    session = SessionLocal()
    try:
        return session.query(CargoOffer.available_kilos).filter(CargoOffer.id == offer_id).scalar()
    finally:
        session.close()


# ===== MOTOR DE RESERVAS =====

def test_twenty_kilo_scenario(db, make_offer, user_actor, other_actor):
    offer = make_offer(total_kilos=20)
    service = ReservationService(db)

    service.reserve(user_actor, offer.id, 15)
    assert available_kilos(offer.id) == 5

    with pytest.raises(CapacityExceeded) as exc_info:
        service.reserve(other_actor, offer.id, 10)
    assert exc_info.value.details == {"offer_id": offer.id, "available": 5, "requested": 10}
    assert available_kilos(offer.id) == 5

    service.reserve(other_actor, offer.id, 5)
    assert available_kilos(offer.id) == 0


def test_reserve_creates_pending_reservation_with_first_history_entry(db, make_offer, user_actor):
    offer = make_offer()

    reservation = ReservationService(db).reserve(user_actor, offer.id, 4, "Tissus wax")

    assert reservation.status == ShipmentStatus.PENDING_SUBMISSION
    assert reservation.user_id == user_actor.user_id
    assert reservation.shipment_description == "Tissus wax"
    assert CODE_PATTERN.match(reservation.tracking_code)
    assert reservation.total_price == Decimal("32000.00")

    entries = db.query(StatusHistoryEntry).filter(StatusHistoryEntry.reservation_id == reservation.id).all()
    assert len(entries) == 1
    assert entries[0].status == ShipmentStatus.PENDING_SUBMISSION


@pytest.mark.parametrize("kilos", [0, -3])
def test_reserve_rejects_non_positive_kilos(db, make_offer, user_actor, kilos):
    offer = make_offer()
    with pytest.raises(ValidationFailed):
        ReservationService(db).reserve(user_actor, offer.id, kilos)


def test_reserve_missing_or_inactive_offer(db, make_offer, user_actor):
    inactive = make_offer(is_active=False)
    service = ReservationService(db)

    with pytest.raises(OfferNotFound):
        service.reserve(user_actor, 999, 1)
    with pytest.raises(OfferInactive):
        service.reserve(user_actor, inactive.id, 1)
    assert available_kilos(inactive.id) == 20


def test_reserve_requires_authenticated_actor(db, make_offer):
    offer = make_offer()
    with pytest.raises(Unauthorized):
        ReservationService(db).reserve(Actor.anonymous(), offer.id, 1)


def test_issuer_failure_rolls_back_everything(db, make_offer, user_actor):
    offer = make_offer()
    existing = ReservationService(db).reserve(user_actor, offer.id, 2)

    stuck = existing.tracking_code[3:]
    symbols = iter(stuck * 10)
    issuer = TrackingCodeIssuer(max_attempts=3, choice=lambda alphabet: next(symbols))

    with pytest.raises(IssuerExhausted):
        ReservationService(db, issuer=issuer).reserve(user_actor, offer.id, 5)

    assert available_kilos(offer.id) == 18
    assert db.query(Reservation).count() == 1
    assert db.query(StatusHistoryEntry).count() == 1


def test_code_taken_by_concurrent_reservation_is_reissued(db, make_offer, user_actor, other_actor, monkeypatch):
    offer = make_offer(total_kilos=20)
    symbols = iter("A" * 8 + "A" * 8 + "B" * 8)
    issuer = TrackingCodeIssuer(choice=lambda alphabet: next(symbols))
    service = ReservationService(db, issuer=issuer)
    first = service.reserve(user_actor, offer.id, 2)

    # El código de una reserva aún no confirmada no es visible para el emisor
    monkeypatch.setattr(ReservationRepository, "tracking_code_exists", lambda self, code: False)

    second = service.reserve(other_actor, offer.id, 5)

    assert first.tracking_code == "KG-AAAAAAAA"
    assert second.tracking_code == "KG-BBBBBBBB"
    assert available_kilos(offer.id) == 13
    assert db.query(Reservation).count() == 2
    assert db.query(StatusHistoryEntry).count() == 2


def test_unique_index_rejections_count_against_attempt_limit(db, make_offer, user_actor, monkeypatch):
    offer = make_offer(total_kilos=20)
    issuer = TrackingCodeIssuer(max_attempts=3, choice=lambda alphabet: "A")
    service = ReservationService(db, issuer=issuer)
    service.reserve(user_actor, offer.id, 2)

    monkeypatch.setattr(ReservationRepository, "tracking_code_exists", lambda self, code: False)

    with pytest.raises(IssuerExhausted):
        service.reserve(user_actor, offer.id, 5)

    assert available_kilos(offer.id) == 18
    assert db.query(Reservation).count() == 1
    assert db.query(StatusHistoryEntry).count() == 1


def test_concurrent_reservations_never_oversell(make_offer):
    offer = make_offer(total_kilos=20)
    results = []
    lock = threading.Lock()

    def attempt(index):
        session = SessionLocal()
        try:
            ReservationService(session).reserve(Actor(user_id=f"user-{index}"), offer.id, 3)
            outcome = "ok"
        except CapacityExceeded:
            outcome = "full"
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(i,)) for i in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # 20 kg / 3 kg = 6 reservas posibles
    assert results.count("ok") == 6
    assert results.count("full") == 6
    assert available_kilos(offer.id) == 2

    session = SessionLocal()
    try:
        reserved = sum(r.kilos_reserved for r in session.query(Reservation).all())
        codes = {r.tracking_code for r in session.query(Reservation).all()}
    finally:
        session.close()
    assert reserved == 18
    assert len(codes) == 6


def test_concurrent_cancellations_restore_kilos_once(make_offer, user_actor, other_actor, admin_actor, monkeypatch):
    offer = make_offer(total_kilos=20)
    session = SessionLocal()
    try:
        target = ReservationService(session).reserve(user_actor, offer.id, 5).id
        ReservationService(session).reserve(other_actor, offer.id, 10)
    finally:
        session.close()
    assert available_kilos(offer.id) == 5

    # Ambas cancelaciones leen la reserva antes de que cualquiera escriba
    barrier = threading.Barrier(2)
    original = ReservationRepository.get_by_id_for_update

    def read_then_wait(self, reservation_id):
        reservation = original(self, reservation_id)
        barrier.wait(timeout=10)
        return reservation

    monkeypatch.setattr(ReservationRepository, "get_by_id_for_update", read_then_wait)

    results = []
    lock = threading.Lock()

    def attempt(actor):
        session = SessionLocal()
        try:
            ReservationService(session).cancel(target, actor)
            outcome = "cancelled"
        except ReservationNotFound:
            outcome = "gone"
        finally:
            session.close()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(actor,)) for actor in (user_actor, admin_actor)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["cancelled", "gone"]
    assert available_kilos(offer.id) == 10


def test_cancel_loses_to_shipment_received_meanwhile(db, make_offer, user_actor, admin_actor, monkeypatch):
    offer = make_offer(total_kilos=20)
    reservation_id = ReservationService(db).reserve(user_actor, offer.id, 3).id

    original = ReservationRepository.get_by_id_for_update
    shipped = []

    # El admin recibe el paquete justo después de que el dueño leyó la reserva.
    # SQLite ignora FOR UPDATE, así que la transición no espera al lock.
    def read_then_ship(self, reservation_id):
        reservation = original(self, reservation_id)
        if not shipped:
            shipped.append(True)
            session = SessionLocal()
            try:
                StatusTrackerService(session).transition(
                    reservation_id, ShipmentStatus.RECEIVED_AT_ORIGIN, admin_actor
                )
            finally:
                session.close()
        return reservation

    monkeypatch.setattr(ReservationRepository, "get_by_id_for_update", read_then_ship)

    with pytest.raises(Unauthorized):
        ReservationService(db).cancel(reservation_id, user_actor)

    assert available_kilos(offer.id) == 17
    db.expire_all()
    remaining = db.get(Reservation, reservation_id)
    assert remaining is not None
    assert remaining.status == ShipmentStatus.RECEIVED_AT_ORIGIN
    assert db.query(StatusHistoryEntry).filter(StatusHistoryEntry.reservation_id == reservation_id).count() == 2


# ===== CANCELACIÓN =====

def test_reserve_then_cancel_restores_capacity(db, make_offer, user_actor):
    offer = make_offer(total_kilos=20)
    service = ReservationService(db)
    reservation = service.reserve(user_actor, offer.id, 7)
    reservation_id = reservation.id

    result = service.cancel(reservation_id, user_actor)

    assert result.kilos_restored == 7
    assert result.available_kilos == 20
    assert available_kilos(offer.id) == 20
    assert db.query(Reservation).count() == 0
    assert db.query(StatusHistoryEntry).count() == 0


def test_owner_cannot_cancel_once_shipment_started(db, make_offer, user_actor, admin_actor):
    offer = make_offer()
    service = ReservationService(db)
    reservation = service.reserve(user_actor, offer.id, 3)
    reservation.status = ShipmentStatus.RECEIVED_AT_ORIGIN
    db.commit()

    with pytest.raises(Unauthorized):
        service.cancel(reservation.id, user_actor)

    result = service.cancel(reservation.id, admin_actor)
    assert result.available_kilos == 20


def test_stranger_cannot_cancel(db, make_offer, user_actor, other_actor):
    offer = make_offer()
    service = ReservationService(db)
    reservation = service.reserve(user_actor, offer.id, 3)

    with pytest.raises(Unauthorized):
        service.cancel(reservation.id, other_actor)
    with pytest.raises(ReservationNotFound):
        service.cancel(999, user_actor)


def test_cancel_never_restores_above_total(db, make_offer, user_actor, admin_actor):
    offer = make_offer(total_kilos=20)
    service = ReservationService(db)
    reservation = service.reserve(user_actor, offer.id, 5)

    # Un admin reduce la capacidad después de la reserva
    offer_row = db.get(CargoOffer, offer.id)
    offer_row.total_kilos = 17
    offer_row.available_kilos = 15
    db.commit()

    result = service.cancel(reservation.id, admin_actor)
    assert result.available_kilos == 17


# ===== API =====

def test_create_reservation_endpoint(client, make_offer, user_headers):
    offer = make_offer()

    response = client.post(
        "/api/v1/reservations",
        json={"cargo_offer_id": offer.id, "kilos_reserved": 5, "shipment_description": "  "},
        headers=user_headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending_submission"
    assert body["shipment_description"] is None
    assert CODE_PATTERN.match(body["tracking_code"])
    assert Decimal(body["total_price"]) == Decimal("40000.00")
    assert body["currency"] == "FCFA"
    assert body["cargo_offer"]["arrival_city"] == "Dakar"


def test_create_reservation_capacity_error_payload(client, make_offer, user_headers):
    offer = make_offer(total_kilos=20)

    response = client.post(
        "/api/v1/reservations",
        json={"cargo_offer_id": offer.id, "kilos_reserved": 21},
        headers=user_headers
    )

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "capacity_exceeded"
    assert body["details"]["available"] == 20
    assert body["details"]["requested"] == 21


def test_create_reservation_requires_token(client, make_offer):
    offer = make_offer()
    response = client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 1})
    assert response.status_code in (401, 403)


def test_invalid_token_is_rejected(client):
    response = client.get("/api/v1/reservations/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_list_my_reservations_newest_first(client, make_offer, user_headers, other_headers):
    offer = make_offer()
    first = client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 1}, headers=user_headers).json()
    second = client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 2}, headers=user_headers).json()
    client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 3}, headers=other_headers)

    body = client.get("/api/v1/reservations/me", headers=user_headers).json()

    assert body["total"] == 2
    assert [r["id"] for r in body["data"]] == [second["id"], first["id"]]


def test_admin_list_includes_owner_full_name(client, make_offer, user_headers, admin_headers):
    offer = make_offer()
    client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 1}, headers=user_headers)

    assert client.get("/api/v1/reservations", headers=user_headers).status_code == 403

    body = client.get("/api/v1/reservations", headers=admin_headers).json()
    assert body["total"] == 1
    assert body["data"][0]["owner_full_name"] == "Aminata Diallo"


def test_non_owner_cannot_read_reservation_by_id(client, make_offer, user_headers, other_headers, admin_headers):
    offer = make_offer()
    created = client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 1}, headers=user_headers).json()

    assert client.get(f"/api/v1/reservations/{created['id']}", headers=user_headers).status_code == 200
    assert client.get(f"/api/v1/reservations/{created['id']}", headers=admin_headers).status_code == 200

    response = client.get(f"/api/v1/reservations/{created['id']}", headers=other_headers)
    assert response.status_code == 403
    assert response.json()["error_code"] == "unauthorized"

    # El código de seguimiento sí es público
    assert client.get(f"/api/v1/tracking/{created['tracking_code']}", headers=other_headers).status_code == 200


def test_update_description_only_while_pending(client, db, make_offer, user_headers, admin_headers):
    offer = make_offer()
    created = client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 1}, headers=user_headers).json()

    response = client.patch(
        f"/api/v1/reservations/{created['id']}",
        json={"shipment_description": "Documents"},
        headers=user_headers
    )
    assert response.status_code == 200
    assert response.json()["shipment_description"] == "Documents"

    client.post(
        f"/api/v1/tracking/reservations/{created['id']}/status",
        json={"status": "in_transit"},
        headers=admin_headers
    )

    response = client.patch(
        f"/api/v1/reservations/{created['id']}",
        json={"shipment_description": "Autre chose"},
        headers=user_headers
    )
    assert response.status_code == 403


def test_admin_cannot_edit_description(client, make_offer, user_headers, admin_headers):
    offer = make_offer()
    created = client.post(
        "/api/v1/reservations",
        json={"cargo_offer_id": offer.id, "kilos_reserved": 1, "shipment_description": "Tissus wax"},
        headers=user_headers
    ).json()

    response = client.patch(
        f"/api/v1/reservations/{created['id']}",
        json={"shipment_description": "Autre chose"},
        headers=admin_headers
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "unauthorized"
    assert client.get(f"/api/v1/reservations/{created['id']}", headers=user_headers).json()["shipment_description"] == "Tissus wax"


def test_cancel_endpoint(client, make_offer, user_headers):
    offer = make_offer(total_kilos=20)
    created = client.post("/api/v1/reservations", json={"cargo_offer_id": offer.id, "kilos_reserved": 8}, headers=user_headers).json()

    response = client.delete(f"/api/v1/reservations/{created['id']}", headers=user_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["tracking_code"] == created["tracking_code"]
    assert body["kilos_restored"] == 8
    assert body["available_kilos"] == 20
    assert client.get(f"/api/v1/reservations/{created['id']}", headers=user_headers).status_code == 404
