"""
Reservation lifecycle: booking, admin approval/rejection, updates and cancellation.

Every status change appends a ReservationHistory row. Approve and reject are
read-then-write without row locks; concurrent calls on the same reservation
are last-writer-wins.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from app.config import settings
from app.exceptions import ConflictError, NotFoundError
from app.models.customer import Customer
from app.models.reservation import Reservation, ReservationHistory, ReservationStatus
from app.models.restaurant import Restaurant
from app.schemas.reservation import ReservationCreate, ReservationUpdate
from app.services.availability import check_availability
from app.utils import generate_reservation_code

logger = structlog.get_logger()

DEFAULT_REJECTION_REASON = "Sin razón especificada"
CODE_ATTEMPTS = 5


def with_relations(query):
    """Eager-load restaurant and customer for serialization"""
    return query.options(
        selectinload(Reservation.restaurant),
        selectinload(Reservation.customer),
    ).execution_options(populate_existing=True)


async def get_reservation(db: AsyncSession, reservation_id: UUID) -> Reservation:
    """Load a reservation with its relations or raise NotFoundError"""
    result = await db.execute(
        with_relations(select(Reservation).where(Reservation.id == reservation_id))
    )
    reservation = result.scalar_one_or_none()

    if not reservation:
        raise NotFoundError("Reserva no encontrada")

    return reservation


def record_history(
    db: AsyncSession,
    reservation: Reservation,
    old_status: Optional[str],
    new_status: str,
    changed_by: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> ReservationHistory:
    entry = ReservationHistory(
        reservation_id=reservation.id,
        old_status=old_status,
        new_status=new_status,
        changed_by=changed_by,
        metadata_json=metadata,
    )
    db.add(entry)
    return entry


def build_rejection_note(existing: Optional[str], reason: Optional[str]) -> str:
    """Append the rejection reason to existing special requests, never replacing them"""
    note = f"Rechazado: {reason or DEFAULT_REJECTION_REASON}"
    if existing:
        return f"{existing}\n\n{note}"
    return note


async def _commit(db: AsyncSession):
    """Commit, or roll back so a failed transition leaves no partial state in the session"""
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def approve_reservation(
    db: AsyncSession,
    reservation_id: UUID,
    changed_by: str = "ADMIN",
) -> Reservation:
    """Confirm a reservation; re-approving re-stamps the timestamps"""
    reservation = await get_reservation(db, reservation_id)
    old_status = reservation.status

    now = datetime.utcnow()
    reservation.status = ReservationStatus.CONFIRMADO.value
    reservation.confirmed_at = now
    reservation.updated_at = now
    record_history(db, reservation, old_status, reservation.status, changed_by)

    await _commit(db)

    logger.info(
        "Reservation approved",
        reservation_id=str(reservation_id),
        old_status=old_status,
        changed_by=changed_by,
    )

    return await get_reservation(db, reservation_id)


async def reject_reservation(
    db: AsyncSession,
    reservation_id: UUID,
    reason: Optional[str] = None,
) -> Reservation:
    """Cancel a reservation and append the rejection note to its special requests"""
    reservation = await get_reservation(db, reservation_id)
    old_status = reservation.status

    now = datetime.utcnow()
    reservation.status = ReservationStatus.CANCELADO.value
    reservation.cancelled_at = now
    reservation.updated_at = now
    reservation.special_requests = build_rejection_note(reservation.special_requests, reason)
    record_history(
        db,
        reservation,
        old_status,
        reservation.status,
        "ADMIN",
        {"reason": reason or DEFAULT_REJECTION_REASON},
    )

    await _commit(db)

    logger.info(
        "Reservation rejected",
        reservation_id=str(reservation_id),
        old_status=old_status,
        reason=reason,
    )

    return await get_reservation(db, reservation_id)


async def cancel_reservation(
    db: AsyncSession,
    reservation_id: UUID,
    changed_by: str = "SYSTEM",
) -> Reservation:
    reservation = await get_reservation(db, reservation_id)
    old_status = reservation.status

    now = datetime.utcnow()
    reservation.status = ReservationStatus.CANCELADO.value
    reservation.cancelled_at = now
    reservation.updated_at = now
    record_history(db, reservation, old_status, reservation.status, changed_by)

    await _commit(db)

    logger.info("Reservation cancelled", reservation_id=str(reservation_id), changed_by=changed_by)

    return await get_reservation(db, reservation_id)


async def _find_or_create_customer(db: AsyncSession, phone: str, name: str) -> Customer:
    result = await db.execute(select(Customer).where(Customer.phone_number == phone))
    customer = result.scalar_one_or_none()

    if not customer:
        customer = Customer(phone_number=phone, name=name)
        db.add(customer)
        await db.flush()
    elif customer.name != name:
        customer.name = name

    return customer


async def _unique_reservation_code(db: AsyncSession) -> str:
    for _ in range(CODE_ATTEMPTS):
        code = generate_reservation_code()
        result = await db.execute(
            select(Reservation.id).where(Reservation.reservation_code == code)
        )
        if result.scalar_one_or_none() is None:
            return code
    raise ConflictError("No se pudo generar un código de reserva único")


async def create_reservation(
    db: AsyncSession,
    data: ReservationCreate,
    now: Optional[datetime] = None,
) -> Reservation:
    """Book a new PENDIENTE reservation after checking availability"""
    result = await db.execute(select(Restaurant).where(Restaurant.id == data.restaurant_id))
    restaurant = result.scalar_one_or_none()

    if not restaurant or not restaurant.is_active:
        raise NotFoundError("Restaurante no encontrado")

    reservation_time = data.reservation_time.replace(second=0, microsecond=0)

    availability = await check_availability(
        db,
        data.reservation_date,
        reservation_time,
        data.party_size,
        data.restaurant_id,
    )

    if not availability.available:
        raise ConflictError(
            "No hay disponibilidad para la fecha y hora seleccionadas",
            details={
                "message": availability.message,
                "alternativeSlots": availability.alternative_slots,
            },
        )

    customer = await _find_or_create_customer(db, data.customer_phone, data.customer_name)

    session_expires_at = None
    if data.session_id:
        session_expires_at = (now or datetime.utcnow()) + timedelta(
            minutes=settings.session_hold_minutes
        )

    reservation = Reservation(
        reservation_code=await _unique_reservation_code(db),
        customer_id=customer.id,
        customer_name=data.customer_name,
        customer_phone=data.customer_phone,
        restaurant_id=data.restaurant_id,
        reservation_date=data.reservation_date,
        reservation_time=reservation_time,
        party_size=data.party_size,
        table_ids=availability.suggested_tables,
        status=ReservationStatus.PENDIENTE.value,
        source=data.source,
        session_id=data.session_id,
        session_expires_at=session_expires_at,
        special_requests=data.special_requests,
    )
    db.add(reservation)
    await db.flush()

    record_history(
        db,
        reservation,
        None,
        reservation.status,
        data.source,
        {"source": data.source, "sessionId": data.session_id},
    )

    await _commit(db)

    logger.info(
        "Reservation created",
        reservation_id=str(reservation.id),
        code=reservation.reservation_code,
        restaurant_id=str(data.restaurant_id),
        party_size=data.party_size,
        source=data.source,
    )

    return await get_reservation(db, reservation.id)


async def update_reservation(
    db: AsyncSession,
    reservation_id: UUID,
    data: ReservationUpdate,
) -> Reservation:
    """Partial update; status changes stamp their timestamp and are logged"""
    reservation = await get_reservation(db, reservation_id)
    changes = data.model_dump(exclude_unset=True)
    old_status = reservation.status

    for field in ("customer_name", "customer_phone", "reservation_date", "party_size"):
        if changes.get(field) is not None:
            setattr(reservation, field, changes[field])

    if "special_requests" in changes:
        reservation.special_requests = changes["special_requests"]

    if changes.get("reservation_time") is not None:
        reservation.reservation_time = changes["reservation_time"].replace(second=0, microsecond=0)

    if changes.get("table_ids") is not None:
        reservation.table_ids = [str(table_id) for table_id in changes["table_ids"]]

    new_status = changes.get("status")
    if new_status and new_status != old_status:
        reservation.status = new_status
        if new_status == ReservationStatus.CONFIRMADO.value:
            reservation.confirmed_at = datetime.utcnow()
        elif new_status == ReservationStatus.CANCELADO.value:
            reservation.cancelled_at = datetime.utcnow()

        record_history(
            db,
            reservation,
            old_status,
            new_status,
            "ADMIN",
            {"update": data.model_dump(mode="json", exclude_unset=True)},
        )

    new_phone = changes.get("customer_phone")
    if new_phone and (not reservation.customer or reservation.customer.phone_number != new_phone):
        # The number may already belong to another customer; the reservation follows the number
        customer = await _find_or_create_customer(db, new_phone, reservation.customer_name)
        reservation.customer_id = customer.id
    elif reservation.customer and changes.get("customer_name"):
        reservation.customer.name = changes["customer_name"]

    reservation.updated_at = datetime.utcnow()
    await _commit(db)

    logger.info(
        "Reservation updated",
        reservation_id=str(reservation_id),
        fields=sorted(changes),
    )

    return await get_reservation(db, reservation_id)


async def release_expired_sessions(
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> List[UUID]:
    """Cancel PENDIENTE reservations whose slot hold has expired"""
    now = now or datetime.utcnow()

    result = await db.execute(
        select(Reservation).where(
            Reservation.status == ReservationStatus.PENDIENTE.value,
            Reservation.session_expires_at.is_not(None),
            Reservation.session_expires_at < now,
        )
    )
    expired = result.scalars().all()

    for reservation in expired:
        reservation.status = ReservationStatus.CANCELADO.value
        reservation.cancelled_at = now
        reservation.updated_at = now
        record_history(
            db,
            reservation,
            ReservationStatus.PENDIENTE.value,
            ReservationStatus.CANCELADO.value,
            "SYSTEM",
            {"reason": "session_expired"},
        )

    await _commit(db)

    released = [reservation.id for reservation in expired]
    if released:
        logger.info("Released expired reservation holds", count=len(released))

    return released
