# app/core/exceptions.py
"""
Errores de dominio de KiloShare.

Cada error lleva su código HTTP y un `error_code` estable para que el
cliente pueda mostrar un mensaje al usuario. El handler registrado en
`app.core.middleware` los convierte en `ErrorResponse`.
"""
from typing import Any, Dict, Optional


class KiloShareError(Exception):
    status_code: int = 400
    error_code: str = "error"
    default_message: str = "Error en la operación"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailed(KiloShareError):
    status_code = 400
    error_code = "validation_failed"
    default_message = "Datos inválidos"


class Unauthorized(KiloShareError):
    status_code = 403
    error_code = "unauthorized"
    default_message = "No tienes permisos para realizar esta operación"


class OfferNotFound(KiloShareError):
    status_code = 404
    error_code = "offer_not_found"
    default_message = "Oferta no encontrada"

    def __init__(self, offer_id: int):
        super().__init__(f"Oferta {offer_id} no encontrada", {"offer_id": offer_id})


class ReservationNotFound(KiloShareError):
    status_code = 404
    error_code = "reservation_not_found"
    default_message = "Reserva no encontrada"

    def __init__(self, reservation_id: int):
        super().__init__(f"Reserva {reservation_id} no encontrada", {"reservation_id": reservation_id})


class OfferInactive(KiloShareError):
    status_code = 409
    error_code = "offer_inactive"
    default_message = "La oferta no está activa"

    def __init__(self, offer_id: int):
        super().__init__(f"La oferta {offer_id} no está activa", {"offer_id": offer_id})


class CapacityExceeded(KiloShareError):
    status_code = 409
    error_code = "capacity_exceeded"
    default_message = "Capacidad insuficiente"

    def __init__(self, offer_id: int, available: int, requested: int):
        super().__init__(
            f"Capacidad insuficiente. Disponible: {available} kg, Solicitado: {requested} kg",
            {"offer_id": offer_id, "available": available, "requested": requested}
        )


class InvalidTransition(KiloShareError):
    status_code = 409
    error_code = "invalid_transition"
    default_message = "Transición de estado no permitida"

    def __init__(self, current: str, requested: str, expected: Optional[str] = None):
        super().__init__(
            f"No se puede pasar de '{current}' a '{requested}'",
            {"current": current, "requested": requested, "expected": expected}
        )


class InvalidOfferCapacity(KiloShareError):
    status_code = 422
    error_code = "invalid_offer_capacity"
    default_message = "Los kilos disponibles deben estar entre 0 y el total"

    def __init__(self, total_kilos: int, available_kilos: int):
        super().__init__(
            f"Kilos disponibles ({available_kilos}) fuera de rango para un total de {total_kilos}",
            {"total_kilos": total_kilos, "available_kilos": available_kilos}
        )


class ConfirmationRequired(KiloShareError):
    status_code = 428
    error_code = "confirmation_required"
    default_message = "Operación destructiva: se requiere confirm=true"


class IssuerExhausted(KiloShareError):
    status_code = 503
    error_code = "issuer_exhausted"
    default_message = "No se pudo generar un código de seguimiento único"

    def __init__(self, attempts: int):
        super().__init__(
            f"No se pudo generar un código de seguimiento único tras {attempts} intentos",
            {"attempts": attempts}
        )
