# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text,
    Numeric, ForeignKey, UniqueConstraint, CheckConstraint,
    Enum as SAEnum, func
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime, timezone
from enum import Enum

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =====================================================
# ENUMS
# =====================================================

class ShipmentStatus(str, Enum):
    """Estados del envío, en orden de avance"""
    PENDING_SUBMISSION = "pending_submission"
    RECEIVED_AT_ORIGIN = "received_at_origin"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_DESTINATION = "arrived_at_destination"
    DELIVERED = "delivered"

    @classmethod
    def ordered(cls) -> list:
        return list(cls)

    @classmethod
    def initial(cls) -> "ShipmentStatus":
        return cls.PENDING_SUBMISSION

    @property
    def position(self) -> int:
        return ShipmentStatus.ordered().index(self)

    @property
    def next_status(self):
        ordered = ShipmentStatus.ordered()
        if self.position + 1 < len(ordered):
            return ordered[self.position + 1]
        return None

    @property
    def is_terminal(self) -> bool:
        return self.next_status is None


class AppRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


shipment_status_type = SAEnum(ShipmentStatus, name="shipment_status", values_callable=_enum_values)


# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.current_timestamp(), onupdate=utcnow)


# =====================================================
# USUARIOS (identidad externa)
# =====================================================

class Profile(Base, TimestampMixin):
    """Datos de contacto del usuario; el id viene del proveedor de identidad"""
    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True)
    full_name = Column(String(255))
    phone_number = Column(String(50))
    id_document = Column(String(100))


class UserRole(Base):
    """Rol asignado a un usuario (admin | user)"""
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(SAEnum(AppRole, name="app_role", values_callable=_enum_values), nullable=False, default=AppRole.USER)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.current_timestamp())

    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )


# =====================================================
# OFERTAS Y RESERVAS
# =====================================================

class CargoOffer(Base, TimestampMixin):
    """Capacidad de equipaje publicada para un trayecto y fecha"""
    __tablename__ = "cargo_offers"

    id = Column(Integer, primary_key=True, index=True)

    # Trayecto
    departure_city = Column(String(255), nullable=False)
    departure_country = Column(String(255), nullable=False)
    departure_country_flag = Column(String(16), nullable=False)
    arrival_city = Column(String(255), nullable=False)
    arrival_country = Column(String(255), nullable=False)
    arrival_country_flag = Column(String(16), nullable=False)
    departure_date = Column(Date, nullable=False, index=True)

    # Capacidad
    total_kilos = Column(Integer, nullable=False)
    available_kilos = Column(Integer, nullable=False)
    price_per_kilo = Column(Numeric(10, 2), nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    reservations = relationship(
        "Reservation",
        back_populates="cargo_offer",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint('total_kilos >= 0', name='check_total_kilos_non_negative'),
        CheckConstraint('available_kilos >= 0', name='check_available_kilos_non_negative'),
        CheckConstraint('available_kilos <= total_kilos', name='check_available_le_total'),
    )

    @property
    def is_sold_out(self) -> bool:
        return self.available_kilos <= 0


class Reservation(Base, TimestampMixin):
    """Reserva de kilos de un usuario sobre una oferta"""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    cargo_offer_id = Column(Integer, ForeignKey("cargo_offers.id", ondelete="CASCADE"), nullable=False, index=True)

    kilos_reserved = Column(Integer, nullable=False)
    shipment_description = Column(Text)

    status = Column(shipment_status_type, nullable=False, default=ShipmentStatus.PENDING_SUBMISSION)
    status_updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.current_timestamp())
    tracking_code = Column(String(32), unique=True, nullable=False, index=True)

    # Relationships
    cargo_offer = relationship("CargoOffer", back_populates="reservations")
    status_history = relationship(
        "StatusHistoryEntry",
        back_populates="reservation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StatusHistoryEntry.id"
    )

    __table_args__ = (
        CheckConstraint('kilos_reserved > 0', name='check_kilos_reserved_positive'),
    )

    @property
    def total_price(self):
        return self.kilos_reserved * self.cargo_offer.price_per_kilo

    @property
    def is_pending(self) -> bool:
        return self.status == ShipmentStatus.initial()


class StatusHistoryEntry(Base):
    """Entrada inmutable del historial de estados de una reserva"""
    __tablename__ = "status_history"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(shipment_status_type, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.current_timestamp())

    # Relationships
    reservation = relationship("Reservation", back_populates="status_history")
