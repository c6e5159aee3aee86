"""Admin dashboard, analytics and occupancy timeline schemas"""

from datetime import date
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import Field

from app.schemas.base import CamelModel


class DashboardStats(CamelModel):
    """Per-day KPIs plus queue counters for one restaurant"""
    total_today: int
    confirmed_count: int
    pending_count: int
    cancelled_count: int
    no_show_count: int
    confirmation_rate: int
    avg_party_size: float
    occupancy_rate: int
    total_covers: int

    total_pending: int
    expired_sessions: int
    next_hour_count: int

    total_tables: int
    total_capacity: int


class HourlyBucket(CamelModel):
    hour: int
    label: str
    count: int = 0
    confirmed: int = 0
    pending: int = 0
    cancelled: int = 0
    covers: int = 0


class HourlyChart(CamelModel):
    data: List[HourlyBucket]
    max_count: int


class StatusDistribution(CamelModel):
    data: Dict[str, int]
    total: int
    percentages: Dict[str, int]


class ChartDataResponse(CamelModel):
    hourly: HourlyChart
    status_distribution: StatusDistribution


class AnalyticsPeriod(CamelModel):
    start_date: date
    end_date: date
    days: int


class AnalyticsSummary(CamelModel):
    total_reservations: int
    confirmed_count: int
    pending_count: int
    cancelled_count: int
    no_show_count: int
    total_covers: int
    avg_party_size: float
    confirmation_rate: int
    no_show_rate: int
    avg_occupancy: int
    total_tables: int
    total_capacity: int


class DailyBreakdown(CamelModel):
    day: date = Field(..., alias="date")
    total: int = 0
    confirmed: int = 0
    pending: int = 0
    cancelled: int = 0
    no_show: int = 0
    covers: int = 0


class HourlyBreakdown(CamelModel):
    hour: int
    count: int = 0
    covers: int = 0


class AnalyticsResponse(CamelModel):
    period: AnalyticsPeriod
    summary: AnalyticsSummary
    daily_breakdown: List[DailyBreakdown]
    hourly_breakdown: List[HourlyBreakdown]
    source_breakdown: Dict[str, int]


class TimelineService(CamelModel):
    id: UUID
    name: str
    service_type: str
    start_time: str
    end_time: str
    default_duration_minutes: int
    buffer_minutes: int


class TimelineTable(CamelModel):
    id: UUID
    table_number: str
    capacity: int
    location: Optional[str] = None


class TimelineTableRef(CamelModel):
    id: str
    number: Optional[str] = None


class TimelineReservation(CamelModel):
    id: UUID
    table_ids: List[str]
    tables: List[TimelineTableRef]
    customer_name: str
    party_size: int
    start_time: str
    end_time: str
    status: str


class OccupancyTimeline(CamelModel):
    day: date = Field(..., alias="date")
    service: TimelineService
    tables: List[TimelineTable]
    reservations: List[TimelineReservation]
    time_slots: List[str]


class OccupancyTimelineResponse(CamelModel):
    success: bool = True
    data: OccupancyTimeline
