"""Restaurant and floor plan models"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


TABLE_LOCATIONS = ("patio", "interior", "terraza")
TABLE_SHAPES = ("circular", "cuadrada", "rectangular", "barra")


class Restaurant(Base):
    """Restaurant owning tables, services and reservations"""
    __tablename__ = "restaurants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    phone = Column(String(30))
    address = Column(Text)
    timezone = Column(String(50), default="America/Bogota")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tables = relationship("Table", back_populates="restaurant", cascade="all, delete-orphan")
    services = relationship("Service", back_populates="restaurant", cascade="all, delete-orphan")
    reservations = relationship("Reservation", back_populates="restaurant")


class Table(Base):
    """Physical table on the restaurant floor plan"""
    __tablename__ = "tables"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "table_number", name="uq_tables_restaurant_number"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(
        UUID(as_uuid=True),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
    )
    table_number = Column(String(20), nullable=False)
    capacity = Column(Integer, nullable=False)
    location = Column(String(20))  # patio, interior, terraza
    is_accessible = Column(Boolean, default=False)

    # Visual layout
    shape = Column(String(20), nullable=False, default="rectangular")
    position_x = Column(Integer, default=0)
    position_y = Column(Integer, default=0)
    rotation = Column(Integer, default=0)
    width = Column(Integer, default=100)
    height = Column(Integer, default=80)
    diameter = Column(Integer, default=80)
    stool_count = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="tables")
