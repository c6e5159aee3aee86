"""
WhatsApp notifications through Twilio's messaging API.

Outbound messages carry a numbered option menu; replies (either the option
number or a quick-reply payload id) are mapped back to reservation actions.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.rest import Client as TwilioClient
import structlog

from app.config import settings
from app.exceptions import NotFoundError, ValidationError
from app.models.customer import Customer
from app.models.reservation import Reservation, ReservationStatus
from app.models.whatsapp import WhatsappMessage
from app.schemas.whatsapp import WhatsAppResult, WhatsAppWebhookPayload
from app.services import lifecycle
from app.utils import format_date_es, format_hhmm, with_retry

logger = structlog.get_logger()

CONFIRM_ATTENDANCE = "confirm_attendance"
NEED_RESCHEDULE = "need_reschedule"
CANCEL_RESERVATION = "cancel_reservation"

# Numbered replies accepted in place of quick-reply buttons
OPTION_REPLIES = {
    "1": CONFIRM_ATTENDANCE,
    "2": NEED_RESCHEDULE,
    "3": CANCEL_RESERVATION,
}

DELIVERY_STATUSES = ("sent", "delivered", "read", "failed", "undelivered")

RESCHEDULE_REPLY = "Entendido. Por favor contáctanos al restaurante para reprogramar tu reserva."
CANCEL_REPLY = "Tu reserva ha sido cancelada. Esperamos verte pronto."


class WhatsAppService:
    """Sends reservation messages and handles customer replies"""

    def __init__(self, client: Optional[TwilioClient] = None):
        self._client = client

    @property
    def client(self) -> Optional[TwilioClient]:
        if self._client is None and settings.twilio_configured:
            self._client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
        return self._client

    def format_phone_number(self, phone: str) -> str:
        """Convert a local or 57-prefixed number to Twilio's whatsapp:+57XXXXXXXXXX address"""
        cleaned = re.sub(r"\D", "", phone)
        country = settings.whatsapp_country_code
        if cleaned.startswith(country) and len(cleaned) == 10 + len(country):
            return f"whatsapp:+{cleaned}"
        if len(cleaned) == 10:
            return f"whatsapp:+{country}{cleaned}"
        raise ValidationError("Formato de número de teléfono inválido")

    def local_phone_number(self, address: str) -> str:
        """Strip the whatsapp: scheme and country code from an inbound sender"""
        cleaned = re.sub(r"\D", "", address)
        country = settings.whatsapp_country_code
        if cleaned.startswith(country) and len(cleaned) == 10 + len(country):
            return cleaned[len(country):]
        return cleaned

    def build_confirmation_message(self, reservation: Reservation) -> str:
        restaurant_name = reservation.restaurant.name if reservation.restaurant else "Nuestro restaurante"
        return "\n".join([
            "Reserva Confirmada",
            "",
            f"Hola {reservation.customer_name}, tu reserva ha sido confirmada:",
            "",
            f"Fecha: {format_date_es(reservation.reservation_date)}",
            f"Hora: {format_hhmm(reservation.reservation_time)}",
            f"Personas: {reservation.party_size}",
            f"Lugar: {restaurant_name}",
            "",
            f"Codigo: {reservation.reservation_code}",
            "",
            "Deseas confirmar asistencia?",
            "1. Confirmar",
            "2. Reprogramar",
            "3. Cancelar",
        ])

    def build_reminder_message(self, reservation: Reservation) -> str:
        restaurant_name = reservation.restaurant.name if reservation.restaurant else "Nuestro restaurante"
        return "\n".join([
            "Recordatorio de reserva",
            "",
            f"Hola {reservation.customer_name}, este es un recordatorio de tu reserva para:",
            f"Fecha: {format_date_es(reservation.reservation_date)}",
            f"Hora: {format_hhmm(reservation.reservation_time)}",
            f"Personas: {reservation.party_size}",
            f"Lugar: {restaurant_name}",
            "",
            f"Codigo de reserva: {reservation.reservation_code}",
            "",
            "Podras asistir?",
            "1. Si, asistire",
            "2. Necesito cambiar",
            "3. Cancelar",
        ])

    async def send_message(self, to: str, body: str) -> WhatsAppResult:
        """Send a WhatsApp message, retrying transient provider failures"""
        client = self.client
        if client is None:
            logger.warning("WhatsApp not configured, message not sent", to=to[-4:])
            return WhatsAppResult(success=False, error="WhatsApp no configurado")

        async def _create():
            return client.messages.create(
                body=body,
                from_=f"whatsapp:{settings.twilio_whatsapp_number}",
                to=to,
            )

        try:
            message = await with_retry(
                _create,
                max_retries=settings.notification_max_retries,
                delay=settings.notification_retry_delay_seconds,
                operation="whatsapp_send",
            )
        except Exception as e:
            logger.error("Failed to send WhatsApp message", to=to[-4:], error=str(e))
            return WhatsAppResult(success=False, error=str(e))

        return WhatsAppResult(success=True, message_id=message.sid)

    async def _send_for_reservation(
        self,
        db: AsyncSession,
        reservation_id: UUID,
        kind: str,
    ) -> WhatsAppResult:
        try:
            reservation = await lifecycle.get_reservation(db, reservation_id)
        except NotFoundError:
            return WhatsAppResult(success=False, error="Reserva no encontrada")

        try:
            to = self.format_phone_number(reservation.customer_phone)
        except ValidationError as e:
            return WhatsAppResult(success=False, error=e.message)

        if kind == "confirmation":
            body = self.build_confirmation_message(reservation)
        else:
            body = self.build_reminder_message(reservation)

        result = await self.send_message(to, body)

        if result.success and result.message_id:
            db.add(WhatsappMessage(
                reservation_id=reservation.id,
                message_id=result.message_id,
                direction="outbound",
                status="sent",
            ))
            if kind == "confirmation":
                reservation.confirmation_sent = datetime.utcnow()
            else:
                reservation.reminder_sent = datetime.utcnow()
            await db.commit()

        logger.info(
            "WhatsApp reservation message",
            kind=kind,
            reservation_id=str(reservation_id),
            success=result.success,
        )

        return result

    async def send_reservation_confirmation(self, db: AsyncSession, reservation_id: UUID) -> WhatsAppResult:
        return await self._send_for_reservation(db, reservation_id, "confirmation")

    async def send_reservation_reminder(self, db: AsyncSession, reservation_id: UUID) -> WhatsAppResult:
        return await self._send_for_reservation(db, reservation_id, "reminder")

    def resolve_action(self, payload: WhatsAppWebhookPayload) -> Optional[str]:
        """Map a button payload or a numbered text reply to an action id"""
        if payload.button_id:
            return payload.button_id
        if payload.text:
            return OPTION_REPLIES.get(payload.text.strip())
        return None

    async def handle_webhook(self, db: AsyncSession, payload: WhatsAppWebhookPayload) -> None:
        """Process a customer reply; payloads without a message id are ignored"""
        if not payload.message_id:
            return

        action = self.resolve_action(payload)
        if action:
            await self.handle_button_response(db, action, payload.from_number or "", payload.message_id)

    async def _latest_active_reservation(self, db: AsyncSession, phone: str) -> Optional[Reservation]:
        result = await db.execute(
            select(Reservation)
            .where(
                Reservation.customer_phone == phone,
                Reservation.status.in_([
                    ReservationStatus.PENDIENTE.value,
                    ReservationStatus.CONFIRMADO.value,
                ]),
            )
            .order_by(Reservation.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def handle_button_response(
        self,
        db: AsyncSession,
        action: str,
        sender: str,
        message_id: Optional[str] = None,
    ) -> Optional[Reservation]:
        phone = self.local_phone_number(sender)

        result = await db.execute(select(Customer).where(Customer.phone_number == phone))
        if result.scalar_one_or_none() is None:
            logger.warning("WhatsApp reply from unknown customer", phone=phone[-4:])
            return None

        reservation = await self._latest_active_reservation(db, phone)
        if reservation is None:
            logger.warning("WhatsApp reply without active reservation", phone=phone[-4:])
            return None

        if message_id:
            db.add(WhatsappMessage(
                reservation_id=reservation.id,
                message_id=message_id,
                direction="inbound",
                status="read",
                read_at=datetime.utcnow(),
            ))
            await db.flush()

        logger.info(
            "WhatsApp reply",
            action=action,
            reservation_id=str(reservation.id),
        )

        if action == CONFIRM_ATTENDANCE:
            return await lifecycle.approve_reservation(db, reservation.id, changed_by="WHATSAPP")

        if action == NEED_RESCHEDULE:
            await db.commit()
            await self.send_message(self.format_phone_number(phone), RESCHEDULE_REPLY)
            return reservation

        if action == CANCEL_RESERVATION:
            cancelled = await lifecycle.cancel_reservation(db, reservation.id, changed_by="WHATSAPP")
            await self.send_message(self.format_phone_number(phone), CANCEL_REPLY)
            return cancelled

        logger.warning("Unknown WhatsApp action", action=action)
        await db.commit()
        return reservation

    async def handle_status_callback(self, db: AsyncSession, message_sid: str, status: str) -> bool:
        """Record a delivery status reported by the provider"""
        if status not in DELIVERY_STATUSES:
            return False

        result = await db.execute(
            select(WhatsappMessage).where(WhatsappMessage.message_id == message_sid)
        )
        message = result.scalars().first()

        if not message:
            logger.warning("WhatsApp message not found", message_sid=message_sid)
            return False

        message.status = "failed" if status == "undelivered" else status
        if status == "read":
            message.read_at = datetime.utcnow()
        await db.commit()

        return True


whatsapp_service = WhatsAppService()
