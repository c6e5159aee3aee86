"""WhatsApp message log"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class WhatsappMessage(Base):
    """Outbound/inbound WhatsApp messages tied to a reservation"""
    __tablename__ = "whatsapp_messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reservation_id = Column(
        UUID(as_uuid=True),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
    )
    message_id = Column(String(64), nullable=False, index=True)  # Twilio message SID
    direction = Column(String(20), nullable=False)  # outbound, inbound
    status = Column(String(20), default="sent")  # sent, delivered, read, failed
    sent_at = Column(DateTime, default=datetime.utcnow)
    read_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    reservation = relationship("Reservation", back_populates="whatsapp_messages")
