"""Reservation schemas"""

from datetime import date, datetime, time
from typing import Optional, List, Literal
from uuid import UUID
from pydantic import Field, field_validator, field_serializer

from app.schemas.base import CamelModel
from app.utils import normalize_phone_number, is_valid_colombian_phone


StatusLiteral = Literal["PENDIENTE", "CONFIRMADO", "CANCELADO", "NO_SHOW"]
SourceLiteral = Literal["IVR", "WHATSAPP", "MANUAL", "WEB"]


def _validate_phone(value: str) -> str:
    try:
        normalized = normalize_phone_number(value)
    except Exception:
        raise ValueError("Número de teléfono inválido")
    if not is_valid_colombian_phone(normalized):
        raise ValueError("Número de teléfono inválido")
    return normalized


class RestaurantSummary(CamelModel):
    """Restaurant embedded in reservation payloads"""
    id: UUID
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    timezone: Optional[str] = None


class CustomerSummary(CamelModel):
    """Customer embedded in reservation payloads"""
    id: UUID
    phone_number: str
    name: Optional[str] = None
    no_show_count: Optional[int] = 0


class ReservationCreate(CamelModel):
    """Create reservation request"""
    customer_name: str = Field(..., min_length=2)
    customer_phone: str
    restaurant_id: UUID
    reservation_date: date
    reservation_time: time
    party_size: int = Field(..., ge=1, le=50)
    special_requests: Optional[str] = None
    source: SourceLiteral = "IVR"
    session_id: Optional[str] = None

    @field_validator("customer_phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return _validate_phone(value)


class ReservationUpdate(CamelModel):
    """Partial reservation update"""
    customer_name: Optional[str] = Field(None, min_length=2)
    customer_phone: Optional[str] = None
    reservation_date: Optional[date] = None
    reservation_time: Optional[time] = None
    party_size: Optional[int] = Field(None, ge=1, le=50)
    special_requests: Optional[str] = None
    status: Optional[StatusLiteral] = None
    table_ids: Optional[List[UUID]] = None

    @field_validator("customer_phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _validate_phone(value)


class ReservationAction(CamelModel):
    """Admin approve/reject request"""
    action: str
    reason: Optional[str] = None


class ReservationResponse(CamelModel):
    """Reservation response"""
    id: UUID
    reservation_code: str
    customer_id: Optional[UUID]
    customer_name: str
    customer_phone: str
    restaurant_id: UUID
    reservation_date: date
    reservation_time: time
    party_size: int
    table_ids: Optional[List[str]] = None
    status: str
    source: str
    session_id: Optional[str] = None
    session_expires_at: Optional[datetime] = None
    special_requests: Optional[str] = None
    confirmation_sent: Optional[datetime] = None
    reminder_sent: Optional[datetime] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    restaurant: Optional[RestaurantSummary] = None
    customer: Optional[CustomerSummary] = None

    @field_serializer("reservation_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class ReservationEnvelope(CamelModel):
    reservation: ReservationResponse


class ListMeta(CamelModel):
    """Pagination metadata"""
    limit: int
    offset: int
    count: int


class AdminListMeta(ListMeta):
    """Admin pagination metadata with the global pending backlog"""
    pending_count: int


class ReservationListResponse(CamelModel):
    reservations: List[ReservationResponse]
    meta: ListMeta


class AdminReservationListResponse(CamelModel):
    reservations: List[ReservationResponse]
    meta: AdminListMeta


class PendingStats(CamelModel):
    """Pending queue statistics"""
    total_pending: int
    today_pending: int
    expired_sessions: int
    next_hour: int


class PendingQueueResponse(CamelModel):
    reservations: List[ReservationResponse]
    stats: PendingStats
    expired_sessions: List[UUID]


class AvailabilitySlot(CamelModel):
    """Alternative time slot"""
    time: str
    available: bool


class AvailabilityResponse(CamelModel):
    """Availability check response"""
    available: bool
    message: Optional[str] = None
    service_id: Optional[UUID] = None
    service_name: Optional[str] = None
    suggested_tables: List[str] = []
    alternative_slots: List[AvailabilitySlot] = []
