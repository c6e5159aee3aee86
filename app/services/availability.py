"""
Service-hours availability.

Matches a requested date/time against a restaurant's configured services,
generates slots and suggests tables not held by overlapping reservations.
"""

from dataclasses import dataclass, field
from datetime import date, time, datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.models.reservation import Reservation, ReservationStatus
from app.models.restaurant import Table
from app.models.service import Service, SERVICE_TYPES, SLOT_MODES
from app.utils import format_hhmm, minutes_to_time, parse_hhmm, time_to_minutes

logger = structlog.get_logger()

# Lunch and dinner windows a service must fit in
SERVICE_WINDOWS = {
    "comida": (time(13, 0), time(16, 0)),
    "cena": (time(20, 0), time(23, 0)),
}
ALTERNATIVE_WINDOW_MINUTES = 120
MAX_ALTERNATIVES = 10
HOLDING_STATUSES = (ReservationStatus.PENDIENTE.value, ReservationStatus.CONFIRMADO.value)


@dataclass
class AvailabilityResult:
    available: bool
    service: Optional[Service] = None
    available_tables: List[Table] = field(default_factory=list)
    suggested_tables: List[str] = field(default_factory=list)
    message: Optional[str] = None
    alternative_slots: List[Dict[str, Any]] = field(default_factory=list)


def is_time_within_service(requested: time, service: Service) -> bool:
    """Start is inclusive, end is exclusive"""
    minutes = time_to_minutes(requested)
    return time_to_minutes(service.start_time) <= minutes < time_to_minutes(service.end_time)


def is_date_matching_service(requested: date, service: Service) -> bool:
    """Check the service's date range and weekday/weekend restriction"""
    if service.date_range:
        start = date.fromisoformat(service.date_range["start"])
        end = date.fromisoformat(service.date_range["end"])
        if requested < start or requested > end:
            return False

    is_weekend = requested.weekday() >= 5
    if service.day_type == "weekday" and is_weekend:
        return False
    if service.day_type == "weekend" and not is_weekend:
        return False

    # Seasons other than "todos" are not month-bound yet and always match
    return True


def generate_auto_slots(service: Service) -> List[str]:
    """Slots every duration + buffer minutes that still fit before the service closes"""
    slots = []
    current = time_to_minutes(service.start_time)
    end = time_to_minutes(service.end_time)
    step = service.default_duration_minutes + service.buffer_minutes

    while current + service.default_duration_minutes <= end:
        slots.append(format_hhmm(minutes_to_time(current)))
        current += step

    return slots


def get_service_slots(service: Service) -> List[str]:
    if service.slot_generation_mode == "auto":
        return generate_auto_slots(service)
    return list(service.manual_slots or [])


def calculate_release_time(reservation_time: time, duration_minutes: int) -> time:
    """Time at which a table held from reservation_time becomes free"""
    start = datetime.combine(date.min, reservation_time)
    return (start + timedelta(minutes=duration_minutes)).time()


def select_optimal_tables(available_tables: List[Table], party_size: int) -> List[str]:
    """
    Pick tables for a party.

    available_tables must be sorted by ascending capacity. Prefers a single
    table with at most two spare seats, then the smallest table that fits,
    and finally combines tables until the party is seated.
    """
    if not available_tables:
        return []

    for table in available_tables:
        if party_size <= table.capacity <= party_size + 2:
            return [str(table.id)]

    smallest = available_tables[0]
    if smallest.capacity >= party_size:
        return [str(smallest.id)]

    selected = []
    total_capacity = 0
    for table in available_tables:
        selected.append(str(table.id))
        total_capacity += table.capacity
        if total_capacity >= party_size:
            break

    return selected


def validate_service_config(
    service_type: Optional[str] = None,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    default_duration_minutes: Optional[int] = None,
    buffer_minutes: Optional[int] = None,
    slot_generation_mode: Optional[str] = None,
    manual_slots: Optional[List[str]] = None,
    **_: Any,
) -> List[str]:
    """Return the list of configuration errors (empty when valid)"""
    errors = []

    if service_type and service_type not in SERVICE_TYPES:
        errors.append('El tipo de servicio debe ser "comida" o "cena"')

    if start_time and end_time:
        start = time_to_minutes(start_time)
        end = time_to_minutes(end_time)

        if start >= end:
            errors.append("La hora de inicio debe ser anterior a la hora de fin")

        if service_type == "comida":
            window_start, window_end = SERVICE_WINDOWS["comida"]
            if start < time_to_minutes(window_start) or end > time_to_minutes(window_end):
                errors.append("El servicio de comida debe estar entre 13:00 y 16:00")

        if service_type == "cena":
            window_start, window_end = SERVICE_WINDOWS["cena"]
            if start < time_to_minutes(window_start) or end > time_to_minutes(window_end):
                errors.append("El servicio de cena debe estar entre 20:00 y 23:00")

    if default_duration_minutes is not None:
        if default_duration_minutes < 60 or default_duration_minutes > 180:
            errors.append("La duración debe estar entre 60 y 180 minutos")

    if buffer_minutes is not None:
        if buffer_minutes < 10 or buffer_minutes > 30:
            errors.append("El tiempo de buffer debe estar entre 10 y 30 minutos")

    if slot_generation_mode and slot_generation_mode not in SLOT_MODES:
        errors.append('El modo de generación debe ser "auto" o "manual"')

    if slot_generation_mode == "manual":
        if not manual_slots:
            errors.append("En modo manual, debes especificar los turnos")
        else:
            for slot in manual_slots:
                try:
                    parse_hhmm(slot)
                except ValueError:
                    errors.append(f"Turno inválido: {slot}")

    return errors


async def get_active_services_for(
    db: AsyncSession,
    requested_date: date,
    requested_time: time,
    restaurant_id: UUID,
) -> List[Service]:
    """Active services matching the date and time, oldest first"""
    result = await db.execute(
        select(Service)
        .where(Service.restaurant_id == restaurant_id, Service.is_active == True)
        .order_by(Service.created_at.asc())
    )
    services = result.scalars().all()

    return [
        service for service in services
        if is_date_matching_service(requested_date, service)
        and is_time_within_service(requested_time, service)
    ]


async def _get_conflicting_reservations(
    db: AsyncSession,
    restaurant_id: UUID,
    requested_date: date,
    requested_time: time,
    duration_minutes: int,
    exclude_reservation_id: Optional[UUID] = None,
) -> List[Reservation]:
    """Reservations on the same day whose seating overlaps [time, time + duration)"""
    query = select(Reservation).where(
        Reservation.restaurant_id == restaurant_id,
        Reservation.reservation_date == requested_date,
        Reservation.status.in_(HOLDING_STATUSES),
    )
    if exclude_reservation_id:
        query = query.where(Reservation.id != exclude_reservation_id)

    result = await db.execute(query)

    start = time_to_minutes(requested_time)
    end = start + duration_minutes
    return [
        reservation for reservation in result.scalars().all()
        if time_to_minutes(reservation.reservation_time) < end
        and time_to_minutes(reservation.reservation_time) + duration_minutes > start
    ]


async def check_availability(
    db: AsyncSession,
    requested_date: date,
    requested_time: time,
    party_size: int,
    restaurant_id: UUID,
    exclude_reservation_id: Optional[UUID] = None,
    include_alternatives: bool = True,
) -> AvailabilityResult:
    """Check whether a party can be seated at the requested date and time"""
    services = await get_active_services_for(db, requested_date, requested_time, restaurant_id)

    if not services:
        return AvailabilityResult(
            available=False,
            message="No hay servicio configurado para esta fecha y hora",
        )

    # First created service wins
    service = services[0]

    result = await db.execute(select(Table).where(Table.restaurant_id == restaurant_id))
    candidate_tables = result.scalars().all()

    if service.available_table_ids:
        allowed = {str(table_id) for table_id in service.available_table_ids}
        candidate_tables = [t for t in candidate_tables if str(t.id) in allowed]

    suitable_tables = [t for t in candidate_tables if t.capacity >= party_size]

    if not suitable_tables:
        return AvailabilityResult(
            available=False,
            service=service,
            message=f"No hay mesas disponibles para {party_size} personas en este servicio",
        )

    conflicting = await _get_conflicting_reservations(
        db,
        restaurant_id,
        requested_date,
        requested_time,
        service.default_duration_minutes,
        exclude_reservation_id,
    )
    occupied = {str(table_id) for r in conflicting for table_id in (r.table_ids or [])}

    available_tables = [t for t in suitable_tables if str(t.id) not in occupied]

    if not available_tables:
        alternatives = []
        if include_alternatives:
            alternatives = await _find_alternative_slots(
                db, service, requested_date, requested_time, party_size, restaurant_id
            )
        return AvailabilityResult(
            available=False,
            service=service,
            message=f"No hay mesas disponibles para las {format_hhmm(requested_time)} en {service.name}",
            alternative_slots=alternatives,
        )

    available_tables.sort(key=lambda t: t.capacity)

    return AvailabilityResult(
        available=True,
        service=service,
        available_tables=available_tables,
        suggested_tables=select_optimal_tables(available_tables, party_size),
    )


async def _find_alternative_slots(
    db: AsyncSession,
    service: Service,
    requested_date: date,
    requested_time: time,
    party_size: int,
    restaurant_id: UUID,
) -> List[Dict[str, Any]]:
    """Closest slots of the same service within two hours of the requested time"""
    base = time_to_minutes(requested_time)

    nearby = []
    for slot in get_service_slots(service):
        diff = time_to_minutes(parse_hhmm(slot)) - base
        if diff != 0 and abs(diff) <= ALTERNATIVE_WINDOW_MINUTES:
            nearby.append((abs(diff), slot))
    nearby.sort()

    alternatives = []
    for _, slot in nearby[:MAX_ALTERNATIVES]:
        availability = await check_availability(
            db,
            requested_date,
            parse_hhmm(slot),
            party_size,
            restaurant_id,
            include_alternatives=False,
        )
        alternatives.append({"time": slot, "available": availability.available})

    return alternatives
