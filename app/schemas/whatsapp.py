"""WhatsApp notification schemas"""

from typing import Optional
from uuid import UUID
from pydantic import Field

from app.schemas.base import CamelModel


class WhatsAppActionRequest(CamelModel):
    """Send-confirmation / send-reminder request"""
    action: str
    reservation_id: Optional[UUID] = None


class WhatsAppResult(CamelModel):
    """Outcome of an outbound message"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class WhatsAppWebhookPayload(CamelModel):
    """Provider callback: customer reply or button press"""
    message_id: Optional[str] = None
    from_number: Optional[str] = Field(None, alias="from")
    text: Optional[str] = None
    button_id: Optional[str] = None
