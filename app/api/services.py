"""Service hours (comida/cena) API endpoints"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.restaurant import Restaurant
from app.models.service import Service
from app.schemas.service import (
    ServiceCreate,
    ServiceUpdate,
    ServiceEnvelope,
    ServiceListResponse,
    ServiceListMeta,
    ServiceSlotsResponse,
)
from app.services.availability import get_service_slots, validate_service_config

router = APIRouter()
logger = structlog.get_logger()


# Columns a PUT may clear with an explicit null
NULLABLE_FIELDS = {"description", "date_range", "manual_slots", "available_table_ids"}


def _to_columns(values: Dict[str, Any]) -> Dict[str, Any]:
    """Convert request values to their stored JSON representation"""
    if values.get("available_table_ids") is not None:
        values["available_table_ids"] = [str(table_id) for table_id in values["available_table_ids"]]
    if values.get("date_range") is not None:
        values["date_range"] = {
            "start": values["date_range"]["start"].isoformat(),
            "end": values["date_range"]["end"].isoformat(),
        }
    return values


async def _get_service(db: AsyncSession, service_id: UUID) -> Service:
    result = await db.execute(select(Service).where(Service.id == service_id))
    service = result.scalar_one_or_none()

    if not service:
        raise NotFoundError("Servicio no encontrado")

    return service


async def _ensure_unique_slot(
    db: AsyncSession,
    restaurant_id: UUID,
    day_type: str,
    start_time,
    exclude_id: Optional[UUID] = None,
):
    query = select(Service).where(
        Service.restaurant_id == restaurant_id,
        Service.day_type == day_type,
        Service.start_time == start_time,
    )
    if exclude_id:
        query = query.where(Service.id != exclude_id)

    result = await db.execute(query)
    if result.scalars().first():
        raise ConflictError("Ya existe un servicio con ese tipo de día y hora de inicio")


@router.get("", response_model=ServiceListResponse)
async def list_services(
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    service_type: Optional[str] = Query(None, alias="serviceType"),
    season: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """List services, newest first"""
    query = select(Service)

    if restaurant_id:
        query = query.where(Service.restaurant_id == restaurant_id)

    if is_active is not None:
        query = query.where(Service.is_active == is_active)

    if service_type:
        query = query.where(Service.service_type == service_type)

    if season:
        query = query.where(Service.season == season)

    result = await db.execute(query.order_by(Service.created_at.desc()))
    services = result.scalars().all()

    return ServiceListResponse(data=services, meta=ServiceListMeta(total=len(services)))


@router.post("", response_model=ServiceEnvelope, status_code=201)
async def create_service(
    service_data: ServiceCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a service after validating its configuration"""
    values = service_data.model_dump()

    errors = validate_service_config(**values)
    if errors:
        raise ValidationError("Configuración de servicio inválida", details=errors)

    result = await db.execute(select(Restaurant).where(Restaurant.id == service_data.restaurant_id))
    if not result.scalar_one_or_none():
        raise NotFoundError("Restaurante no encontrado")

    await _ensure_unique_slot(db, service_data.restaurant_id, service_data.day_type, service_data.start_time)

    service = Service(**_to_columns(values))
    db.add(service)
    await db.commit()
    await db.refresh(service)

    logger.info("Service created", service_id=str(service.id), service_type=service.service_type)

    return ServiceEnvelope(data=service)


@router.get("/{service_id}", response_model=ServiceEnvelope)
async def get_service(
    service_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get service details"""
    return ServiceEnvelope(data=await _get_service(db, service_id))


@router.put("/{service_id}", response_model=ServiceEnvelope)
async def update_service(
    service_id: UUID,
    service_data: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a service; the merged configuration must stay valid"""
    service = await _get_service(db, service_id)
    changes = service_data.model_dump(exclude_unset=True)

    merged = {
        "service_type": service.service_type,
        "start_time": service.start_time,
        "end_time": service.end_time,
        "default_duration_minutes": service.default_duration_minutes,
        "buffer_minutes": service.buffer_minutes,
        "slot_generation_mode": service.slot_generation_mode,
        "manual_slots": service.manual_slots,
    }
    merged.update({k: v for k, v in changes.items() if v is not None or k in NULLABLE_FIELDS})

    errors = validate_service_config(**merged)
    if errors:
        raise ValidationError("Configuración de servicio inválida", details=errors)

    if "day_type" in changes or "start_time" in changes:
        await _ensure_unique_slot(
            db,
            service.restaurant_id,
            changes.get("day_type") or service.day_type,
            changes.get("start_time") or service.start_time,
            exclude_id=service.id,
        )

    for field, value in _to_columns(changes).items():
        if value is not None or field in NULLABLE_FIELDS:
            setattr(service, field, value)

    await db.commit()
    await db.refresh(service)

    return ServiceEnvelope(data=service)


@router.delete("/{service_id}")
async def delete_service(
    service_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a service"""
    service = await _get_service(db, service_id)
    await db.delete(service)
    await db.commit()

    return {"success": True}


@router.get("/{service_id}/slots", response_model=ServiceSlotsResponse)
async def get_slots(
    service_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Bookable slots for a service"""
    service = await _get_service(db, service_id)

    return ServiceSlotsResponse(
        service_id=service.id,
        mode=service.slot_generation_mode,
        slots=get_service_slots(service),
    )
