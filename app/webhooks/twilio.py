"""Twilio webhook handlers"""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.twiml.messaging_response import MessagingResponse
import structlog

from app.database import get_db
from app.schemas.whatsapp import WhatsAppWebhookPayload
from app.services.whatsapp import whatsapp_service

router = APIRouter()
logger = structlog.get_logger()


@router.post("/whatsapp")
async def handle_whatsapp_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    MessageSid: str = Form(...),
    From: str = Form(...),
    Body: Optional[str] = Form(default=None),
    ButtonPayload: Optional[str] = Form(default=None),
):
    """
    Handle an incoming WhatsApp message from Twilio.
    Replies are sent separately, so the TwiML response is empty.
    """
    logger.info(
        "Incoming WhatsApp message",
        message_sid=MessageSid,
        from_number=From[-4:],
        has_button=ButtonPayload is not None,
    )

    payload = WhatsAppWebhookPayload(
        message_id=MessageSid,
        from_number=From,
        text=Body,
        button_id=ButtonPayload,
    )
    await whatsapp_service.handle_webhook(db, payload)

    response = MessagingResponse()
    return Response(content=str(response), media_type="application/xml")


@router.post("/status")
async def handle_status_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    MessageSid: str = Form(...),
    MessageStatus: str = Form(...),
):
    """Handle message delivery status updates from Twilio"""
    logger.info(
        "WhatsApp status update",
        message_sid=MessageSid,
        status=MessageStatus,
    )

    await whatsapp_service.handle_status_callback(db, MessageSid, MessageStatus)

    return {"status": "ok"}
