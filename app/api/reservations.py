"""Public reservation API endpoints (booking flow and lookup)"""

from datetime import date, time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.api.auth import bearer_scheme, get_current_admin
from app.database import get_db
from app.exceptions import AppError
from app.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationEnvelope,
    ReservationListResponse,
    ListMeta,
    AvailabilityResponse,
    AvailabilitySlot,
)
from app.services import lifecycle, queries
from app.services.availability import check_availability
from app.utils import normalize_phone_number

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    status: Optional[str] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    phone: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List reservations with filters"""
    if phone:
        phone = normalize_phone_number(phone)

    reservations = await queries.list_reservations(
        db,
        status=status,
        on_date=on_date,
        restaurant_id=restaurant_id,
        phone=phone,
        limit=limit,
        offset=offset,
    )

    return ReservationListResponse(
        reservations=reservations,
        meta=ListMeta(limit=limit, offset=offset, count=len(reservations)),
    )


@router.post("", response_model=ReservationEnvelope, status_code=201)
async def create_reservation(
    reservation_data: ReservationCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new pending reservation"""
    reservation = await lifecycle.create_reservation(db, reservation_data)
    return ReservationEnvelope(reservation=reservation)


@router.get("/availability/check", response_model=AvailabilityResponse)
async def check_reservation_availability(
    restaurant_id: UUID = Query(..., alias="restaurantId"),
    on_date: date = Query(..., alias="date"),
    at_time: time = Query(..., alias="time"),
    party_size: int = Query(..., alias="partySize", ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Check reservation availability"""
    result = await check_availability(db, on_date, at_time, party_size, restaurant_id)

    return AvailabilityResponse(
        available=result.available,
        message=result.message,
        service_id=result.service.id if result.service else None,
        service_name=result.service.name if result.service else None,
        suggested_tables=result.suggested_tables,
        alternative_slots=[AvailabilitySlot(**slot) for slot in result.alternative_slots],
    )


@router.get("/code/{code}", response_model=ReservationEnvelope)
async def get_reservation_by_code(
    code: str,
    db: AsyncSession = Depends(get_db),
):
    """Look up a reservation by its shareable code"""
    try:
        reservation = await queries.find_by_code(db, code)
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching reservation by code", code=code, error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener reserva") from e

    return ReservationEnvelope(reservation=reservation)


@router.get("/{reservation_id}", response_model=ReservationEnvelope)
async def get_reservation(
    reservation_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get reservation details"""
    reservation = await lifecycle.get_reservation(db, reservation_id)
    return ReservationEnvelope(reservation=reservation)


@router.put("/{reservation_id}", response_model=ReservationEnvelope)
async def update_reservation(
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
):
    """Update reservation; changing its status requires an admin token"""
    if reservation_data.status is not None:
        await get_current_admin(credentials)

    reservation = await lifecycle.update_reservation(db, reservation_id, reservation_data)
    return ReservationEnvelope(reservation=reservation)


@router.delete("/{reservation_id}", response_model=ReservationEnvelope)
async def cancel_reservation(
    reservation_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a reservation"""
    reservation = await lifecycle.cancel_reservation(db, reservation_id)
    return ReservationEnvelope(reservation=reservation)
