# app/core/auth/policies.py
"""
Capa de políticas de acceso.

Reglas por recurso (antes políticas RLS de la base de datos), evaluadas de
forma explícita por cada operación sobre un `Actor`:

    Recurso              Lectura                          Escritura
    CargoOffer           cualquiera si activa; admin       admin
    Reservation          dueño; admin                      dueño si pendiente; admin
    StatusHistoryEntry   dueño de la reserva; admin        admin
    UserRole             uno mismo; admin                  admin
    Profile              uno mismo; admin                  uno mismo
"""
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import Unauthorized
from app.shared.database.models import (
    CargoOffer, Reservation, StatusHistoryEntry, UserRole, Profile, ShipmentStatus
)


@dataclass(frozen=True)
class Actor:
    """Identidad explícita con la que se ejecuta una operación"""
    user_id: Optional[str] = None
    is_admin: bool = False

    @classmethod
    def anonymous(cls) -> "Actor":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def owns(self, user_id: Optional[str]) -> bool:
        return self.is_authenticated and self.user_id == user_id


class ResourcePolicy:
    resource_name = "recurso"

    def can_read(self, actor: Actor, resource) -> bool:
        return actor.is_admin

    def can_write(self, actor: Actor, resource) -> bool:
        return actor.is_admin


class OfferPolicy(ResourcePolicy):
    resource_name = "oferta"

    def can_read(self, actor: Actor, offer: CargoOffer) -> bool:
        return actor.is_admin or bool(offer.is_active)


class ReservationPolicy(ResourcePolicy):
    resource_name = "reserva"

    def can_read(self, actor: Actor, reservation: Reservation) -> bool:
        return actor.is_admin or actor.owns(reservation.user_id)

    def can_write(self, actor: Actor, reservation: Reservation) -> bool:
        if actor.is_admin:
            return True
        return actor.owns(reservation.user_id) and reservation.status == ShipmentStatus.initial()


class StatusHistoryPolicy(ResourcePolicy):
    """El recurso evaluado es la reserva padre del historial"""
    resource_name = "historial de estados"

    def can_read(self, actor: Actor, reservation: Reservation) -> bool:
        return actor.is_admin or actor.owns(reservation.user_id)


class UserRolePolicy(ResourcePolicy):
    resource_name = "rol"

    def can_read(self, actor: Actor, role: UserRole) -> bool:
        return actor.is_admin or actor.owns(role.user_id)


class ProfilePolicy(ResourcePolicy):
    resource_name = "perfil"

    def can_read(self, actor: Actor, profile: Profile) -> bool:
        return actor.is_admin or actor.owns(profile.user_id)

    def can_write(self, actor: Actor, profile: Profile) -> bool:
        return actor.owns(profile.user_id)


POLICIES = {
    CargoOffer: OfferPolicy(),
    Reservation: ReservationPolicy(),
    StatusHistoryEntry: StatusHistoryPolicy(),
    UserRole: UserRolePolicy(),
    Profile: ProfilePolicy(),
}


def policy_for(resource_type) -> ResourcePolicy:
    return POLICIES[resource_type]


def authorize_read(actor: Actor, resource, resource_type=None) -> None:
    policy = policy_for(resource_type or type(resource))
    if not policy.can_read(actor, resource):
        raise Unauthorized(f"No tienes permisos para ver este {policy.resource_name}")


def authorize_write(actor: Actor, resource, resource_type=None) -> None:
    policy = policy_for(resource_type or type(resource))
    if not policy.can_write(actor, resource):
        raise Unauthorized(f"No tienes permisos para modificar este {policy.resource_name}")


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise Unauthorized("Operación reservada a administradores")
