"""Database models"""

from app.models.restaurant import Restaurant, Table
from app.models.customer import Customer
from app.models.reservation import Reservation, ReservationHistory, ReservationStatus, ReservationSource
from app.models.service import Service
from app.models.whatsapp import WhatsappMessage

__all__ = [
    "Restaurant",
    "Table",
    "Customer",
    "Reservation",
    "ReservationHistory",
    "ReservationStatus",
    "ReservationSource",
    "Service",
    "WhatsappMessage",
]
