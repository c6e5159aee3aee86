"""Service hours schemas"""

from datetime import date, datetime, time
from typing import Optional, List, Literal
from uuid import UUID
from pydantic import Field, field_serializer, model_validator

from app.schemas.base import CamelModel


ServiceTypeLiteral = Literal["comida", "cena"]
SeasonLiteral = Literal["invierno", "primavera", "verano", "otoño", "todos"]
DayTypeLiteral = Literal["weekday", "weekend", "all"]
SlotModeLiteral = Literal["auto", "manual"]


class DateRange(CamelModel):
    """Inclusive ISO date range a service is restricted to"""
    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self):
        if self.start > self.end:
            raise ValueError("La fecha de inicio debe ser anterior o igual a la fecha de fin")
        return self


class ServiceCreate(CamelModel):
    """Create service request"""
    restaurant_id: UUID
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True
    service_type: ServiceTypeLiteral
    season: SeasonLiteral = "todos"
    day_type: DayTypeLiteral = "all"
    start_time: time
    end_time: time
    default_duration_minutes: int = 90
    buffer_minutes: int = 15
    slot_generation_mode: SlotModeLiteral = "auto"
    date_range: Optional[DateRange] = None
    manual_slots: Optional[List[str]] = None
    available_table_ids: Optional[List[UUID]] = None


class ServiceUpdate(CamelModel):
    """Partial service update"""
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    service_type: Optional[ServiceTypeLiteral] = None
    season: Optional[SeasonLiteral] = None
    day_type: Optional[DayTypeLiteral] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    default_duration_minutes: Optional[int] = None
    buffer_minutes: Optional[int] = None
    slot_generation_mode: Optional[SlotModeLiteral] = None
    date_range: Optional[DateRange] = None
    manual_slots: Optional[List[str]] = None
    available_table_ids: Optional[List[UUID]] = None


class ServiceResponse(CamelModel):
    """Service response"""
    id: UUID
    restaurant_id: UUID
    name: str
    description: Optional[str]
    is_active: bool
    service_type: str
    season: str
    day_type: str
    start_time: time
    end_time: time
    default_duration_minutes: int
    buffer_minutes: int
    slot_generation_mode: str
    date_range: Optional[DateRange] = None
    manual_slots: Optional[List[str]] = None
    available_table_ids: Optional[List[str]] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @field_serializer("start_time", "end_time")
    def serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class ServiceEnvelope(CamelModel):
    success: bool = True
    data: ServiceResponse


class ServiceListMeta(CamelModel):
    total: int


class ServiceListResponse(CamelModel):
    success: bool = True
    data: List[ServiceResponse]
    meta: ServiceListMeta


class ServiceSlotsResponse(CamelModel):
    service_id: UUID
    mode: str
    slots: List[str]
