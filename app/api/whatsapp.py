"""WhatsApp notification endpoints"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.exceptions import AppError, ValidationError
from app.schemas.whatsapp import WhatsAppActionRequest, WhatsAppResult, WhatsAppWebhookPayload
from app.services.whatsapp import whatsapp_service

router = APIRouter()
logger = structlog.get_logger()


@router.post("", response_model=WhatsAppResult)
async def whatsapp_action(
    body: WhatsAppActionRequest,
    db: AsyncSession = Depends(get_db),
):
    """Send a confirmation or reminder for a reservation"""
    try:
        if body.action == "send-confirmation" and body.reservation_id:
            return await whatsapp_service.send_reservation_confirmation(db, body.reservation_id)

        if body.action == "send-reminder" and body.reservation_id:
            return await whatsapp_service.send_reservation_reminder(db, body.reservation_id)

        raise ValidationError("Acción inválida")
    except AppError:
        raise
    except Exception as e:
        logger.error("WhatsApp API error", action=body.action, error=str(e))
        raise HTTPException(status_code=500, detail="Error en el servicio de WhatsApp") from e


@router.put("")
async def whatsapp_webhook(
    payload: WhatsAppWebhookPayload,
    db: AsyncSession = Depends(get_db),
):
    """Customer reply webhook"""
    try:
        await whatsapp_service.handle_webhook(db, payload)
    except AppError:
        raise
    except Exception as e:
        logger.error("WhatsApp webhook error", message_id=payload.message_id, error=str(e))
        raise HTTPException(status_code=500, detail="Error procesando webhook") from e

    return {"success": True}
