"""Floor plan (tables) API endpoints"""

import re
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.reservation import Reservation, ReservationStatus
from app.models.restaurant import Restaurant, Table, TABLE_LOCATIONS
from app.schemas.restaurant import (
    TableCreate,
    TableUpdate,
    TableEnvelope,
    TableListResponse,
    TableStatsResponse,
    LocationStats,
    TableBulkCreate,
    TableBulkError,
    TableBulkResponse,
)
from app.utils import local_now

router = APIRouter()

# Default footprint in px per shape: (width, height)
SHAPE_DEFAULTS = {
    "circular": (80, 80),
    "cuadrada": (80, 80),
    "rectangular": (120, 80),
    "barra": (120, 80),
}


def _table_sort_key(table: Table):
    """Numeric table numbers first, in numeric order"""
    if table.table_number.isdigit():
        return (0, int(table.table_number), "")
    return (1, 0, table.table_number)


async def _get_table(db: AsyncSession, table_id: UUID) -> Table:
    result = await db.execute(select(Table).where(Table.id == table_id))
    table = result.scalar_one_or_none()

    if not table:
        raise HTTPException(status_code=404, detail="Mesa no encontrada")

    return table


async def _ensure_unique_number(
    db: AsyncSession,
    restaurant_id: UUID,
    table_number: str,
    exclude_id: Optional[UUID] = None,
):
    query = select(Table).where(
        Table.restaurant_id == restaurant_id,
        Table.table_number == table_number,
    )
    if exclude_id:
        query = query.where(Table.id != exclude_id)

    result = await db.execute(query)
    if result.scalars().first():
        raise HTTPException(status_code=409, detail="El número de mesa ya existe")


@router.get("", response_model=TableListResponse)
async def list_tables(
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    location: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """List tables, optionally by restaurant and location"""
    query = select(Table)

    if restaurant_id:
        query = query.where(Table.restaurant_id == restaurant_id)

    if location:
        query = query.where(Table.location == location)

    result = await db.execute(query)
    tables = sorted(result.scalars().all(), key=_table_sort_key)

    return TableListResponse(tables=tables, count=len(tables))


@router.post("", response_model=TableEnvelope, status_code=201)
async def create_table(
    table_data: TableCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a table"""
    result = await db.execute(select(Restaurant).where(Restaurant.id == table_data.restaurant_id))
    if not result.scalar_one_or_none():
        raise HTTPException(status_code=404, detail="Restaurante no encontrado")

    await _ensure_unique_number(db, table_data.restaurant_id, table_data.table_number)

    values = table_data.model_dump()
    default_width, default_height = SHAPE_DEFAULTS[table_data.shape]
    if values["width"] is None:
        values["width"] = default_width
    if values["height"] is None:
        values["height"] = default_height

    table = Table(**values)
    db.add(table)
    await db.commit()
    await db.refresh(table)

    return TableEnvelope(table=table)


def _next_table_number(table_numbers) -> int:
    """One past the highest number embedded in the existing table numbers"""
    highest = 0
    for table_number in table_numbers:
        digits = re.sub(r"\D", "", table_number)
        if digits:
            highest = max(highest, int(digits))
    return highest + 1


@router.post("/bulk", response_model=TableBulkResponse, status_code=201)
async def bulk_create_tables(
    bulk_data: TableBulkCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create several tables numbered M-<n>; existing numbers are reported and skipped (207)"""
    result = await db.execute(select(Restaurant).where(Restaurant.id == bulk_data.restaurant_id))
    if not result.scalar_one_or_none():
        raise HTTPException(status_code=404, detail="Restaurante no encontrado")

    result = await db.execute(
        select(Table.table_number).where(Table.restaurant_id == bulk_data.restaurant_id)
    )
    existing = set(result.scalars().all())
    first_number = bulk_data.starting_number or _next_table_number(existing)
    width, height = SHAPE_DEFAULTS["rectangular"]

    created = []
    errors = []
    for number in range(first_number, first_number + bulk_data.count):
        table_number = f"M-{number}"
        if table_number in existing:
            errors.append(TableBulkError(table_number=table_number, error="El número de mesa ya existe"))
            continue

        table = Table(
            restaurant_id=bulk_data.restaurant_id,
            table_number=table_number,
            capacity=bulk_data.capacity,
            location=bulk_data.location,
            is_accessible=bulk_data.is_accessible,
            shape="rectangular",
            width=width,
            height=height,
        )
        db.add(table)
        created.append(table)

    await db.commit()
    for table in created:
        await db.refresh(table)

    if errors:
        response.status_code = 207

    return TableBulkResponse(tables=created, count=len(created), errors=errors)


@router.get("/stats", response_model=TableStatsResponse)
async def get_table_stats(
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    db: AsyncSession = Depends(get_db),
):
    """Capacity and today's utilization for a restaurant"""
    if not restaurant_id:
        raise HTTPException(status_code=400, detail="Se requiere restaurantId")

    result = await db.execute(select(Table).where(Table.restaurant_id == restaurant_id))
    tables = result.scalars().all()

    result = await db.execute(
        select(Reservation).where(
            Reservation.restaurant_id == restaurant_id,
            Reservation.reservation_date == local_now().date(),
            Reservation.status != ReservationStatus.CANCELADO.value,
        )
    )
    occupied = {str(table_id) for r in result.scalars().all() for table_id in (r.table_ids or [])}
    occupied_count = len(occupied & {str(t.id) for t in tables})

    by_location = {}
    for location in TABLE_LOCATIONS:
        located = [t for t in tables if t.location == location]
        by_location[location] = LocationStats(
            count=len(located),
            capacity=sum(t.capacity for t in located),
        )

    return TableStatsResponse(
        total=len(tables),
        total_capacity=sum(t.capacity for t in tables),
        accessible_count=sum(1 for t in tables if t.is_accessible),
        occupied_tables=occupied_count,
        utilization_rate=round(occupied_count / len(tables) * 100) if tables else 0,
        by_location=by_location,
    )


@router.get("/{table_id}", response_model=TableEnvelope)
async def get_table(
    table_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get table details"""
    return TableEnvelope(table=await _get_table(db, table_id))


@router.put("/{table_id}", response_model=TableEnvelope)
async def update_table(
    table_id: UUID,
    table_data: TableUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a table, including its floor plan position"""
    table = await _get_table(db, table_id)
    changes = table_data.model_dump(exclude_unset=True)

    if changes.get("table_number") and changes["table_number"] != table.table_number:
        await _ensure_unique_number(db, table.restaurant_id, changes["table_number"], exclude_id=table.id)

    for field, value in changes.items():
        if value is not None:
            setattr(table, field, value)

    await db.commit()
    await db.refresh(table)

    return TableEnvelope(table=table)


@router.delete("/{table_id}", status_code=204)
async def delete_table(
    table_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Delete a table"""
    table = await _get_table(db, table_id)
    await db.delete(table)
    await db.commit()
