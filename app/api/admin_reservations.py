"""Admin reservation endpoints: listing, pending queue and approve/reject"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.database import get_db
from app.exceptions import AppError, ValidationError
from app.jobs.tasks import enqueue_reservation_confirmation
from app.schemas.reservation import (
    ReservationAction,
    ReservationEnvelope,
    AdminReservationListResponse,
    AdminListMeta,
    PendingQueueResponse,
    PendingStats,
)
from app.services import lifecycle, queries

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=AdminReservationListResponse)
async def list_admin_reservations(
    status: Optional[str] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Filtered reservation page with the global pending count"""
    limit = limit or settings.admin_page_size
    try:
        reservations, pending_count = await queries.admin_list(
            db,
            status=status,
            on_date=on_date,
            restaurant_id=restaurant_id,
            limit=limit,
            offset=offset,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching admin reservations", error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener reservas") from e

    return AdminReservationListResponse(
        reservations=reservations,
        meta=AdminListMeta(
            limit=limit,
            offset=offset,
            count=len(reservations),
            pending_count=pending_count,
        ),
    )


@router.get("/pending", response_model=PendingQueueResponse)
async def get_pending_queue(
    days_ahead: Optional[int] = Query(None, alias="daysAhead", ge=0, le=365),
    db: AsyncSession = Depends(get_db),
):
    """Pending reservations within the look-ahead window, with queue statistics"""
    try:
        queue = await queries.pending_queue(db, days_ahead=days_ahead)
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching pending reservations", error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener reservas pendientes") from e

    return PendingQueueResponse(
        reservations=queue.reservations,
        stats=PendingStats(**queue.stats),
        expired_sessions=queue.expired_session_ids,
    )


@router.post("/{reservation_id}", response_model=ReservationEnvelope)
async def reservation_action(
    reservation_id: UUID,
    body: ReservationAction,
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a reservation"""
    try:
        if body.action == "approve":
            reservation = await lifecycle.approve_reservation(db, reservation_id)
            enqueue_reservation_confirmation(reservation.id)
        elif body.action == "reject":
            reservation = await lifecycle.reject_reservation(db, reservation_id, body.reason)
        else:
            raise ValidationError("Acción inválida")
    except AppError:
        raise
    except Exception as e:
        logger.error("Admin action error", reservation_id=str(reservation_id), error=str(e))
        raise HTTPException(status_code=500, detail="Error en la acción") from e

    return ReservationEnvelope(reservation=reservation)
