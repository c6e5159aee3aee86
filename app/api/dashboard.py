"""Admin dashboard, analytics and occupancy timeline endpoints"""

from datetime import date
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.exceptions import AppError, ValidationError
from app.schemas.dashboard import (
    AnalyticsResponse,
    ChartDataResponse,
    DashboardStats,
    OccupancyTimelineResponse,
)
from app.services import dashboard

router = APIRouter()
logger = structlog.get_logger()


def _require_restaurant(restaurant_id: Optional[UUID]) -> UUID:
    if not restaurant_id:
        raise ValidationError("Se requiere restaurantId")
    return restaurant_id


@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    on_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Today's KPIs (or those of ?date=) for one restaurant"""
    restaurant_id = _require_restaurant(restaurant_id)

    try:
        return await dashboard.daily_stats(db, restaurant_id, on_date=on_date)
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching dashboard stats", restaurant_id=str(restaurant_id), error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener estadísticas") from e


@router.get("/dashboard/chart-data", response_model=ChartDataResponse)
async def get_chart_data(
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    on_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Hourly and status distributions for the dashboard charts"""
    restaurant_id = _require_restaurant(restaurant_id)

    try:
        return await dashboard.chart_data(db, restaurant_id, on_date=on_date)
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching chart data", restaurant_id=str(restaurant_id), error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener datos de gráficos") from e


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    period: int = Query(7, ge=1, le=365),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    """Period analytics; startDate/endDate override the trailing period in days"""
    restaurant_id = _require_restaurant(restaurant_id)

    try:
        return await dashboard.analytics(
            db,
            restaurant_id,
            period_days=period,
            start_date=start_date,
            end_date=end_date,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching analytics", restaurant_id=str(restaurant_id), error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener analíticas") from e


@router.get("/occupancy-timeline", response_model=OccupancyTimelineResponse)
async def get_occupancy_timeline(
    on_date: date = Query(..., alias="date"),
    service_type: Literal["comida", "cena"] = Query(..., alias="serviceType"),
    restaurant_id: Optional[UUID] = Query(None, alias="restaurantId"),
    db: AsyncSession = Depends(get_db),
):
    """Per-table reservation timeline for one service on one date"""
    try:
        timeline = await dashboard.occupancy_timeline(
            db,
            on_date,
            service_type,
            restaurant_id=restaurant_id,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error("Error fetching occupancy timeline", date=str(on_date), error=str(e))
        raise HTTPException(status_code=500, detail="Error al obtener los datos de ocupación") from e

    return OccupancyTimelineResponse(data=timeline)
