"""Pydantic schemas for request/response validation"""

from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationAction,
    ReservationResponse,
    ReservationEnvelope,
    ReservationListResponse,
    AdminReservationListResponse,
    PendingQueueResponse,
    PendingStats,
    AvailabilityResponse,
    AvailabilitySlot,
)
from app.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
    TableCreate,
    TableUpdate,
    TableResponse,
    TableListResponse,
    TableStatsResponse,
    TableBulkCreate,
    TableBulkResponse,
)
from app.schemas.service import (
    ServiceCreate,
    ServiceUpdate,
    ServiceResponse,
    ServiceEnvelope,
    ServiceListResponse,
    ServiceSlotsResponse,
)
from app.schemas.dashboard import (
    DashboardStats,
    ChartDataResponse,
    AnalyticsResponse,
    OccupancyTimelineResponse,
)
from app.schemas.whatsapp import (
    WhatsAppActionRequest,
    WhatsAppResult,
    WhatsAppWebhookPayload,
)

__all__ = [
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationAction",
    "ReservationResponse",
    "ReservationEnvelope",
    "ReservationListResponse",
    "AdminReservationListResponse",
    "PendingQueueResponse",
    "PendingStats",
    "AvailabilityResponse",
    "AvailabilitySlot",
    "RestaurantCreate",
    "RestaurantUpdate",
    "RestaurantResponse",
    "TableCreate",
    "TableUpdate",
    "TableResponse",
    "TableListResponse",
    "TableStatsResponse",
    "TableBulkCreate",
    "TableBulkResponse",
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceResponse",
    "ServiceEnvelope",
    "ServiceListResponse",
    "ServiceSlotsResponse",
    "DashboardStats",
    "ChartDataResponse",
    "AnalyticsResponse",
    "OccupancyTimelineResponse",
    "WhatsAppActionRequest",
    "WhatsAppResult",
    "WhatsAppWebhookPayload",
]
