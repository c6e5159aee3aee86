"""Restaurant and table schemas"""

from datetime import datetime
from typing import Optional, List, Literal, Dict
from uuid import UUID
from pydantic import Field

from app.schemas.base import CamelModel


LocationLiteral = Literal["patio", "interior", "terraza"]
ShapeLiteral = Literal["circular", "cuadrada", "rectangular", "barra"]


class RestaurantCreate(CamelModel):
    """Create restaurant request"""
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    address: Optional[str] = None
    timezone: str = "America/Bogota"


class RestaurantUpdate(CamelModel):
    """Update restaurant request"""
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None


class RestaurantResponse(CamelModel):
    """Restaurant response"""
    id: UUID
    name: str
    phone: Optional[str]
    address: Optional[str]
    timezone: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class TableCreate(CamelModel):
    """Create table request"""
    restaurant_id: UUID
    table_number: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=1, le=20)
    location: LocationLiteral
    is_accessible: bool = False
    shape: ShapeLiteral = "rectangular"
    position_x: int = 0
    position_y: int = 0
    rotation: int = Field(0, ge=0, le=360)
    width: Optional[int] = None
    height: Optional[int] = None
    diameter: int = 80
    stool_count: int = 0


class TableUpdate(CamelModel):
    """Partial table update (also used by floor plan drags)"""
    table_number: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1, le=20)
    location: Optional[LocationLiteral] = None
    is_accessible: Optional[bool] = None
    shape: Optional[ShapeLiteral] = None
    position_x: Optional[int] = None
    position_y: Optional[int] = None
    rotation: Optional[int] = Field(None, ge=0, le=360)
    width: Optional[int] = None
    height: Optional[int] = None
    diameter: Optional[int] = None
    stool_count: Optional[int] = None


class TableResponse(CamelModel):
    """Table response"""
    id: UUID
    restaurant_id: UUID
    table_number: str
    capacity: int
    location: Optional[str]
    is_accessible: bool
    shape: str
    position_x: int
    position_y: int
    rotation: int
    width: int
    height: int
    diameter: int
    stool_count: int


class TableEnvelope(CamelModel):
    table: TableResponse


class TableListResponse(CamelModel):
    tables: List[TableResponse]
    count: int


class LocationStats(CamelModel):
    count: int
    capacity: int


class TableStatsResponse(CamelModel):
    """Floor plan statistics for one restaurant"""
    total: int
    total_capacity: int
    accessible_count: int
    occupied_tables: int
    utilization_rate: int
    by_location: Dict[str, LocationStats]


class TableBulkCreate(CamelModel):
    """Create several identical tables numbered M-<n>"""
    restaurant_id: UUID
    count: int = Field(..., ge=1, le=50)
    capacity: int = Field(..., ge=1, le=20)
    location: LocationLiteral
    is_accessible: bool = False
    starting_number: Optional[int] = Field(None, ge=1)


class TableBulkError(CamelModel):
    table_number: str
    error: str


class TableBulkResponse(CamelModel):
    tables: List[TableResponse]
    count: int
    errors: List[TableBulkError]
