"""
Operational read models for the admin dashboard.

Daily KPIs, chart buckets, period analytics and the per-service occupancy
timeline. Rates are whole percentages; average party size keeps one decimal.
Cancelled reservations never count as covers or occupied tables.
"""

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, ValidationError
from app.models.reservation import Reservation, ReservationStatus
from app.models.restaurant import Table
from app.models.service import Service
from app.schemas.dashboard import (
    AnalyticsPeriod,
    AnalyticsResponse,
    AnalyticsSummary,
    ChartDataResponse,
    DailyBreakdown,
    DashboardStats,
    HourlyBreakdown,
    HourlyBucket,
    HourlyChart,
    OccupancyTimeline,
    StatusDistribution,
    TimelineReservation,
    TimelineService,
    TimelineTable,
    TimelineTableRef,
)
from app.services.availability import (
    HOLDING_STATUSES,
    calculate_release_time,
    generate_auto_slots,
    is_date_matching_service,
    is_time_within_service,
)
from app.utils import format_hhmm, local_now

CHART_HOURS = range(12, 24)
STATUSES = [status.value for status in ReservationStatus]
CANCELADO = ReservationStatus.CANCELADO.value


def rate(part: int, whole: int) -> int:
    """Whole percentage, 0 when there is nothing to divide by"""
    return round(part / whole * 100) if whole else 0


def seated(reservations: Iterable[Reservation]) -> List[Reservation]:
    return [r for r in reservations if r.status != CANCELADO]


def average_party_size(reservations: Iterable[Reservation]) -> float:
    guests = seated(reservations)
    if not guests:
        return 0
    return round(sum(r.party_size for r in guests) / len(guests), 1)


def count_statuses(reservations: Iterable[Reservation]) -> Dict[str, int]:
    counts = Counter(r.status for r in reservations)
    return {status: counts.get(status, 0) for status in STATUSES}


async def _reservations_between(
    db: AsyncSession,
    restaurant_id: UUID,
    start: date,
    end: date,
) -> List[Reservation]:
    result = await db.execute(
        select(Reservation)
        .where(
            Reservation.restaurant_id == restaurant_id,
            Reservation.reservation_date >= start,
            Reservation.reservation_date <= end,
        )
        .order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
    )
    return list(result.scalars().all())


async def _restaurant_tables(db: AsyncSession, restaurant_id: UUID) -> List[Table]:
    result = await db.execute(
        select(Table).where(Table.restaurant_id == restaurant_id).order_by(Table.table_number)
    )
    return list(result.scalars().all())


async def daily_stats(
    db: AsyncSession,
    restaurant_id: UUID,
    on_date: Optional[date] = None,
    now: Optional[datetime] = None,
    utc_now: Optional[datetime] = None,
) -> DashboardStats:
    """KPIs for one day plus the restaurant's pending backlog from that day on"""
    now = now or local_now()
    on_date = on_date or now.date()
    utc_now = utc_now or datetime.utcnow()

    day_reservations = await _reservations_between(db, restaurant_id, on_date, on_date)
    tables = await _restaurant_tables(db, restaurant_id)

    counts = count_statuses(day_reservations)
    confirmed = counts[ReservationStatus.CONFIRMADO.value]
    pending = counts[ReservationStatus.PENDIENTE.value]
    guests = seated(day_reservations)

    table_ids = {str(t.id) for t in tables}
    occupied = {str(table_id) for r in guests for table_id in (r.table_ids or [])} & table_ids

    result = await db.execute(
        select(Reservation).where(
            Reservation.restaurant_id == restaurant_id,
            Reservation.reservation_date >= on_date,
            Reservation.status == ReservationStatus.PENDIENTE.value,
        )
    )
    backlog = result.scalars().all()

    one_hour_from_now = now + timedelta(hours=1)

    return DashboardStats(
        total_today=confirmed + pending,
        confirmed_count=confirmed,
        pending_count=pending,
        cancelled_count=counts[CANCELADO],
        no_show_count=counts[ReservationStatus.NO_SHOW.value],
        confirmation_rate=rate(confirmed, confirmed + pending),
        avg_party_size=average_party_size(day_reservations),
        occupancy_rate=rate(len(occupied), len(tables)),
        total_covers=sum(r.party_size for r in guests),
        total_pending=len(backlog),
        expired_sessions=sum(
            1 for r in backlog
            if r.session_expires_at is not None and r.session_expires_at < utc_now
        ),
        next_hour_count=sum(1 for r in guests if now <= r.starts_at <= one_hour_from_now),
        total_tables=len(tables),
        total_capacity=sum(t.capacity for t in tables),
    )


async def chart_data(
    db: AsyncSession,
    restaurant_id: UUID,
    on_date: Optional[date] = None,
) -> ChartDataResponse:
    """Hourly buckets (12:00 to 23:00) and status distribution for one day"""
    on_date = on_date or local_now().date()
    day_reservations = await _reservations_between(db, restaurant_id, on_date, on_date)

    buckets = {hour: HourlyBucket(hour=hour, label=f"{hour}:00") for hour in CHART_HOURS}
    for reservation in day_reservations:
        bucket = buckets.get(reservation.reservation_time.hour)
        if bucket is None:
            continue

        bucket.count += 1
        bucket.covers += reservation.party_size
        if reservation.status == ReservationStatus.CONFIRMADO.value:
            bucket.confirmed += 1
        elif reservation.status == ReservationStatus.PENDIENTE.value:
            bucket.pending += 1
        elif reservation.status == CANCELADO:
            bucket.cancelled += 1

    hourly = list(buckets.values())
    counts = count_statuses(day_reservations)
    total = sum(counts.values())

    return ChartDataResponse(
        hourly=HourlyChart(data=hourly, max_count=max([b.count for b in hourly] + [1])),
        status_distribution=StatusDistribution(
            data=counts,
            total=total,
            percentages={status: rate(count, total) for status, count in counts.items()},
        ),
    )


async def analytics(
    db: AsyncSession,
    restaurant_id: UUID,
    period_days: int = 7,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> AnalyticsResponse:
    """
    Aggregates over an inclusive date range.

    An explicit start/end pair wins; otherwise the range is the last
    period_days days up to today. avgOccupancy compares covers with total
    seating capacity on the days that had reservations.
    """
    if start_date and end_date:
        start, end = start_date, end_date
    else:
        end = today or local_now().date()
        start = end - timedelta(days=period_days)

    if start > end:
        raise ValidationError("La fecha de inicio debe ser anterior a la fecha de fin")

    reservations = await _reservations_between(db, restaurant_id, start, end)
    tables = await _restaurant_tables(db, restaurant_id)

    counts = count_statuses(reservations)
    confirmed = counts[ReservationStatus.CONFIRMADO.value]
    pending = counts[ReservationStatus.PENDIENTE.value]
    no_show = counts[ReservationStatus.NO_SHOW.value]
    total_covers = sum(r.party_size for r in seated(reservations))
    total_capacity = sum(t.capacity for t in tables)

    daily: Dict[date, DailyBreakdown] = {}
    hourly: Dict[int, HourlyBreakdown] = {}
    for reservation in reservations:
        day = daily.setdefault(
            reservation.reservation_date,
            DailyBreakdown(day=reservation.reservation_date),
        )
        hour = hourly.setdefault(
            reservation.reservation_time.hour,
            HourlyBreakdown(hour=reservation.reservation_time.hour),
        )

        day.total += 1
        hour.count += 1
        if reservation.status == ReservationStatus.CONFIRMADO.value:
            day.confirmed += 1
        elif reservation.status == ReservationStatus.PENDIENTE.value:
            day.pending += 1
        elif reservation.status == CANCELADO:
            day.cancelled += 1
        elif reservation.status == ReservationStatus.NO_SHOW.value:
            day.no_show += 1

        if reservation.status != CANCELADO:
            day.covers += reservation.party_size
            hour.covers += reservation.party_size

    days_with_data = len(daily)

    return AnalyticsResponse(
        period=AnalyticsPeriod(start_date=start, end_date=end, days=days_with_data),
        summary=AnalyticsSummary(
            total_reservations=len(reservations),
            confirmed_count=confirmed,
            pending_count=pending,
            cancelled_count=counts[CANCELADO],
            no_show_count=no_show,
            total_covers=total_covers,
            avg_party_size=average_party_size(reservations),
            confirmation_rate=rate(confirmed, confirmed + pending),
            no_show_rate=rate(no_show, confirmed),
            avg_occupancy=rate(total_covers, total_capacity * days_with_data),
            total_tables=len(tables),
            total_capacity=total_capacity,
        ),
        daily_breakdown=sorted(daily.values(), key=lambda d: d.day, reverse=True),
        hourly_breakdown=sorted(hourly.values(), key=lambda h: h.hour),
        source_breakdown=dict(Counter(r.source for r in reservations)),
    )


def timeline_slots(service: Service) -> List[str]:
    """Auto slots framed by the service's opening and closing times"""
    slots = generate_auto_slots(service)
    start = format_hhmm(service.start_time)
    end = format_hhmm(service.end_time)

    if not slots or slots[0] != start:
        slots.insert(0, start)
    if slots[-1] != end:
        slots.append(end)

    return slots


async def occupancy_timeline(
    db: AsyncSession,
    on_date: date,
    service_type: str,
    restaurant_id: Optional[UUID] = None,
) -> OccupancyTimeline:
    """Tables and seated reservations across the first service of that type running on the date"""
    query = select(Service).where(
        Service.is_active == True,
        Service.service_type == service_type,
    )
    if restaurant_id:
        query = query.where(Service.restaurant_id == restaurant_id)

    result = await db.execute(query.order_by(Service.created_at.asc()))
    matching = [s for s in result.scalars().all() if is_date_matching_service(on_date, s)]

    if not matching:
        raise NotFoundError("No hay servicio configurado para esta fecha")

    service = matching[0]

    tables = await _restaurant_tables(db, service.restaurant_id)
    if service.available_table_ids:
        allowed = set(service.available_table_ids)
        tables = [t for t in tables if str(t.id) in allowed]
    tables_by_id = {str(t.id): t for t in tables}

    result = await db.execute(
        select(Reservation)
        .where(
            Reservation.restaurant_id == service.restaurant_id,
            Reservation.reservation_date == on_date,
            Reservation.status.in_(HOLDING_STATUSES),
        )
        .order_by(Reservation.reservation_time.asc())
    )
    reservations = [
        r for r in result.scalars().all()
        if is_time_within_service(r.reservation_time, service)
    ]

    timeline = []
    for reservation in reservations:
        table_ids = [str(table_id) for table_id in (reservation.table_ids or [])]
        timeline.append(
            TimelineReservation(
                id=reservation.id,
                table_ids=table_ids,
                tables=[
                    TimelineTableRef(
                        id=table_id,
                        number=tables_by_id[table_id].table_number if table_id in tables_by_id else None,
                    )
                    for table_id in table_ids
                ],
                customer_name=reservation.customer_name,
                party_size=reservation.party_size,
                start_time=format_hhmm(reservation.reservation_time),
                end_time=format_hhmm(
                    calculate_release_time(reservation.reservation_time, service.default_duration_minutes)
                ),
                status=reservation.status,
            )
        )

    return OccupancyTimeline(
        day=on_date,
        service=TimelineService(
            id=service.id,
            name=service.name,
            service_type=service.service_type,
            start_time=format_hhmm(service.start_time),
            end_time=format_hhmm(service.end_time),
            default_duration_minutes=service.default_duration_minutes,
            buffer_minutes=service.buffer_minutes,
        ),
        tables=[TimelineTable.model_validate(t) for t in tables],
        reservations=timeline,
        time_slots=timeline_slots(service),
    )
