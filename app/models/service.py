"""Service hours model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, Time, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


SERVICE_TYPES = ("comida", "cena")
SEASONS = ("invierno", "primavera", "verano", "otoño", "todos")
DAY_TYPES = ("weekday", "weekend", "all")
SLOT_MODES = ("auto", "manual")


class Service(Base):
    """Restaurant operating window (lunch or dinner)"""
    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "day_type", "start_time", name="uq_services_restaurant_day_start"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(
        UUID(as_uuid=True),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(Text, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)

    service_type = Column(String(20), nullable=False)  # comida, cena
    season = Column(String(20), nullable=False, default="todos")
    day_type = Column(String(20), nullable=False, default="all")

    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    default_duration_minutes = Column(Integer, nullable=False, default=90)
    buffer_minutes = Column(Integer, nullable=False, default=15)

    slot_generation_mode = Column(String(20), nullable=False, default="auto")
    date_range = Column(JSON)  # {"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"}
    manual_slots = Column(JSON)  # ["13:00", "14:30", ...]
    available_table_ids = Column(JSON)  # table UUIDs as strings

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="services")
