"""Test configuration and fixtures"""

import pytest
from datetime import date, datetime, time, timedelta
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from app.main import app
from app.database import Base, get_db
from app.models import Customer, Reservation, Restaurant, Service, Table
from app.models.reservation import ReservationStatus
from app.api.auth import create_access_token
from app.utils import generate_reservation_code, local_now


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PHONE = "3001234567"


def future_date(days: int = 3) -> date:
    return local_now().date() + timedelta(days=days)


@pytest.fixture
def booking_date() -> date:
    """A date inside the pending look-ahead window"""
    return future_date()


@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_restaurant(test_db):
    """Create a restaurant with a small floor plan and lunch/dinner services"""
    restaurant = Restaurant(
        id=uuid4(),
        name="El Posit",
        phone="6011234567",
        address="Calle 10 # 5-20",
        timezone="America/Bogota",
    )
    test_db.add(restaurant)
    await test_db.flush()

    tables = [
        Table(restaurant_id=restaurant.id, table_number="1", capacity=2, location="interior", shape="circular"),
        Table(restaurant_id=restaurant.id, table_number="2", capacity=4, location="interior", shape="cuadrada"),
        Table(restaurant_id=restaurant.id, table_number="10", capacity=6, location="terraza", is_accessible=True),
    ]
    test_db.add_all(tables)

    services = [
        Service(
            restaurant_id=restaurant.id,
            name="Comida",
            service_type="comida",
            day_type="all",
            start_time=time(13, 0),
            end_time=time(16, 0),
            default_duration_minutes=90,
            buffer_minutes=15,
            created_at=datetime(2024, 1, 1),
        ),
        Service(
            restaurant_id=restaurant.id,
            name="Cena",
            service_type="cena",
            day_type="all",
            start_time=time(20, 0),
            end_time=time(23, 0),
            default_duration_minutes=90,
            buffer_minutes=15,
            created_at=datetime(2024, 1, 2),
        ),
    ]
    test_db.add_all(services)
    await test_db.commit()

    return restaurant


@pytest.fixture
async def test_tables(test_db, test_restaurant):
    """Tables of the test restaurant, smallest first"""
    from sqlalchemy import select

    result = await test_db.execute(
        select(Table).where(Table.restaurant_id == test_restaurant.id).order_by(Table.capacity)
    )
    return result.scalars().all()


@pytest.fixture
async def test_customer(test_db):
    customer = Customer(phone_number=TEST_PHONE, name="Ana Gómez")
    test_db.add(customer)
    await test_db.commit()
    return customer


@pytest.fixture
def make_reservation(test_db, test_restaurant, test_customer):
    """Factory inserting a reservation row directly"""
    async def _make(
        status: str = ReservationStatus.PENDIENTE.value,
        reservation_date: date = None,
        reservation_time: time = time(14, 0),
        party_size: int = 2,
        special_requests: str = None,
        table_ids=None,
        session_expires_at: datetime = None,
        created_at: datetime = None,
    ) -> Reservation:
        reservation = Reservation(
            reservation_code=generate_reservation_code(),
            customer_id=test_customer.id,
            customer_name=test_customer.name,
            customer_phone=test_customer.phone_number,
            restaurant_id=test_restaurant.id,
            reservation_date=reservation_date or future_date(),
            reservation_time=reservation_time,
            party_size=party_size,
            table_ids=table_ids or [],
            status=status,
            source="IVR",
            special_requests=special_requests,
            session_expires_at=session_expires_at,
            created_at=created_at or datetime.utcnow(),
        )
        test_db.add(reservation)
        await test_db.commit()
        return reservation

    return _make


@pytest.fixture
async def client(test_db):
    """Create test client with overridden database"""
    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(client):
    """Create admin authenticated test client"""
    token = create_access_token(str(uuid4()), email="admin@elposit.co")
    client.headers["Authorization"] = f"Bearer {token}"

    return client
