"""Background job tasks"""

from datetime import timedelta
from uuid import UUID
import asyncio
import structlog

from app.jobs.celery_app import celery_app
from app.config import settings
from app.utils import local_now

logger = structlog.get_logger()


def run_async(coro):
    """Run a coroutine to completion and release pooled connections bound to its loop"""
    from app.database import engine

    async def _runner():
        try:
            return await coro
        finally:
            await engine.dispose()

    return asyncio.run(_runner())


def enqueue_reservation_confirmation(reservation_id: UUID) -> bool:
    """
    Queue the WhatsApp confirmation for an approved reservation.

    Best-effort: a broker outage is logged and never fails the caller.
    """
    if not settings.notify_on_approve:
        return False

    try:
        celery_app.send_task("send_reservation_confirmation", args=[str(reservation_id)])
    except Exception as e:
        logger.error(
            "Failed to enqueue reservation confirmation",
            reservation_id=str(reservation_id),
            error=str(e),
        )
        return False

    logger.info("Reservation confirmation queued", reservation_id=str(reservation_id))
    return True


@celery_app.task(name="send_reservation_confirmation")
def send_reservation_confirmation(reservation_id: str):
    """Send the WhatsApp confirmation for one reservation"""
    logger.info("Sending reservation confirmation", reservation_id=reservation_id)

    async def _send():
        from app.database import SessionLocal
        from app.services.whatsapp import whatsapp_service

        async with SessionLocal() as db:
            result = await whatsapp_service.send_reservation_confirmation(db, UUID(reservation_id))
            return result.model_dump()

    return run_async(_send())


@celery_app.task(name="send_reservation_reminders")
def send_reservation_reminders():
    """Remind confirmed guests booked for tomorrow who have not been reminded yet"""
    logger.info("Sending reservation reminders")

    async def _send_reminders():
        from app.database import SessionLocal
        from app.models.reservation import Reservation, ReservationStatus
        from app.services.whatsapp import whatsapp_service
        from sqlalchemy import select

        tomorrow = local_now().date() + timedelta(days=1)

        async with SessionLocal() as db:
            result = await db.execute(
                select(Reservation.id).where(
                    Reservation.reservation_date == tomorrow,
                    Reservation.status == ReservationStatus.CONFIRMADO.value,
                    Reservation.reminder_sent.is_(None),
                )
            )
            reservation_ids = result.scalars().all()

            sent = 0
            for reservation_id in reservation_ids:
                reminder = await whatsapp_service.send_reservation_reminder(db, reservation_id)
                if reminder.success:
                    sent += 1
                else:
                    logger.error(
                        "Failed to send reservation reminder",
                        reservation_id=str(reservation_id),
                        error=reminder.error,
                    )

            logger.info("Reservation reminders sent", sent=sent, total=len(reservation_ids))
            return sent

    return run_async(_send_reminders())


@celery_app.task(name="release_expired_sessions")
def release_expired_sessions():
    """Cancel pending reservations whose slot hold expired"""
    logger.info("Releasing expired reservation holds")

    async def _release():
        from app.database import SessionLocal
        from app.services.lifecycle import release_expired_sessions as release

        async with SessionLocal() as db:
            released = await release(db)
            return [str(reservation_id) for reservation_id in released]

    return run_async(_release())
