"""Reservation models"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Date, Time, DateTime, ForeignKey, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDIENTE = "PENDIENTE"
    CONFIRMADO = "CONFIRMADO"
    CANCELADO = "CANCELADO"
    NO_SHOW = "NO_SHOW"


class ReservationSource(str, enum.Enum):
    """Channel a reservation was booked through"""
    IVR = "IVR"
    WHATSAPP = "WHATSAPP"
    MANUAL = "MANUAL"
    WEB = "WEB"


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reservation_code = Column(String(20), unique=True, nullable=False)

    # Customer
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id", ondelete="SET NULL"))
    customer_name = Column(Text, nullable=False)
    customer_phone = Column(String(20), nullable=False)

    # Booking
    restaurant_id = Column(
        UUID(as_uuid=True),
        ForeignKey("restaurants.id", ondelete="RESTRICT"),
        nullable=False,
    )
    reservation_date = Column(Date, nullable=False)
    reservation_time = Column(Time, nullable=False)
    party_size = Column(Integer, nullable=False)
    table_ids = Column(JSON, default=list)

    # Status
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDIENTE.value)
    source = Column(String(20), nullable=False, default=ReservationSource.IVR.value)

    # Slot hold
    session_id = Column(String(100), unique=True)
    session_expires_at = Column(DateTime)

    special_requests = Column(Text)

    # WhatsApp notifications
    confirmation_sent = Column(DateTime)
    reminder_sent = Column(DateTime)

    # Audit
    created_at = Column(DateTime, default=datetime.utcnow)
    confirmed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="reservations")
    customer = relationship("Customer", back_populates="reservations")
    history = relationship(
        "ReservationHistory",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationHistory.created_at",
    )
    whatsapp_messages = relationship(
        "WhatsappMessage",
        back_populates="reservation",
        cascade="all, delete-orphan",
    )

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.reservation_date, self.reservation_time)


class ReservationHistory(Base):
    """Append-only status change log"""
    __tablename__ = "reservation_history"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reservation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
    )
    old_status = Column(String(20))
    new_status = Column(String(20), nullable=False)
    changed_by = Column(String(50), nullable=False)  # ADMIN, SYSTEM, WHATSAPP, or booking source
    metadata_json = Column("metadata", JSON)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    reservation = relationship("Reservation", back_populates="history")
