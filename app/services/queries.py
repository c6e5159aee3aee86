"""Read-side queries for the admin dashboard and the public lookup"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import NotFoundError
from app.models.reservation import Reservation, ReservationStatus
from app.services.lifecycle import with_relations
from app.utils import local_now, normalize_reservation_code


@dataclass
class PendingQueue:
    reservations: List[Reservation]
    stats: Dict[str, int]
    expired_session_ids: List[UUID] = field(default_factory=list)


def _newest_first(query):
    return query.order_by(
        Reservation.reservation_date.desc(),
        Reservation.reservation_time.desc(),
    )


async def pending_queue(
    db: AsyncSession,
    days_ahead: Optional[int] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
    utc_now: Optional[datetime] = None,
) -> PendingQueue:
    """
    Pending reservations dated within [today, today + days_ahead].

    `now` is wall-clock time in the configured restaurant timezone and drives
    "today" and the next-hour count; `utc_now` is compared with session hold
    expiry. Expired holds are only reported, never released here.
    """
    if days_ahead is None:
        days_ahead = settings.pending_days_ahead
    now = now or local_now()
    today = today or now.date()
    utc_now = utc_now or datetime.utcnow()
    until = today + timedelta(days=days_ahead)

    result = await db.execute(
        _newest_first(
            with_relations(
                select(Reservation).where(
                    Reservation.status == ReservationStatus.PENDIENTE.value,
                    Reservation.reservation_date >= today,
                    Reservation.reservation_date <= until,
                )
            )
        )
    )
    reservations = list(result.scalars().all())

    expired = [
        r for r in reservations
        if r.session_expires_at is not None and r.session_expires_at < utc_now
    ]
    one_hour_from_now = now + timedelta(hours=1)

    stats = {
        "total_pending": len(reservations),
        "today_pending": sum(1 for r in reservations if r.reservation_date == today),
        "expired_sessions": len(expired),
        "next_hour": sum(1 for r in reservations if now <= r.starts_at <= one_hour_from_now),
    }

    return PendingQueue(
        reservations=reservations,
        stats=stats,
        expired_session_ids=[r.id for r in expired],
    )


async def count_pending(db: AsyncSession) -> int:
    """Global pending backlog, independent of any listing filter"""
    result = await db.execute(
        select(func.count(Reservation.id)).where(
            Reservation.status == ReservationStatus.PENDIENTE.value
        )
    )
    return result.scalar() or 0


async def admin_list(
    db: AsyncSession,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    restaurant_id: Optional[UUID] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Tuple[List[Reservation], int]:
    """Filtered page of reservations plus the global pending count"""
    limit = limit or settings.admin_page_size
    query = select(Reservation)

    if status:
        query = query.where(Reservation.status == status)

    if on_date:
        query = query.where(Reservation.reservation_date == on_date)

    if restaurant_id:
        query = query.where(Reservation.restaurant_id == restaurant_id)

    query = _newest_first(with_relations(query)).offset(offset).limit(limit)

    result = await db.execute(query)
    reservations = list(result.scalars().all())

    return reservations, await count_pending(db)


async def list_reservations(
    db: AsyncSession,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    restaurant_id: Optional[UUID] = None,
    phone: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Reservation]:
    """Public listing, most recently booked first"""
    query = select(Reservation)

    if status:
        query = query.where(Reservation.status == status)
    if on_date:
        query = query.where(Reservation.reservation_date == on_date)
    if restaurant_id:
        query = query.where(Reservation.restaurant_id == restaurant_id)
    if phone:
        query = query.where(Reservation.customer_phone == phone)

    query = with_relations(query).order_by(Reservation.created_at.desc()).offset(offset).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def find_by_code(db: AsyncSession, code: str) -> Reservation:
    """Exact lookup of a user-entered code such as 'res-ab12c' or 'AB12C'"""
    result = await db.execute(
        with_relations(
            select(Reservation).where(
                Reservation.reservation_code == normalize_reservation_code(code)
            )
        )
    )
    reservation = result.scalar_one_or_none()

    if not reservation:
        raise NotFoundError("Reserva no encontrada")

    return reservation
