"""Tests for dashboard KPIs, charts, analytics, occupancy timeline and bulk tables"""

import pytest
from datetime import datetime, time, timedelta
from httpx import AsyncClient
from uuid import uuid4

from app.models import Service
from app.services import dashboard


@pytest.fixture
async def busy_day(make_reservation, test_tables, booking_date):
    """One reservation per status on booking_date"""
    small, medium, large = test_tables
    return {
        "confirmed": await make_reservation(
            status="CONFIRMADO",
            reservation_date=booking_date,
            reservation_time=time(14, 0),
            party_size=2,
            table_ids=[str(small.id)],
        ),
        "pending": await make_reservation(
            reservation_date=booking_date,
            reservation_time=time(21, 0),
            party_size=4,
            table_ids=[str(medium.id)],
        ),
        "cancelled": await make_reservation(
            status="CANCELADO",
            reservation_date=booking_date,
            reservation_time=time(20, 0),
            party_size=6,
            table_ids=[str(large.id)],
        ),
        "no_show": await make_reservation(
            status="NO_SHOW",
            reservation_date=booking_date,
            reservation_time=time(13, 0),
            party_size=3,
        ),
    }


def test_rate():
    assert dashboard.rate(1, 3) == 33
    assert dashboard.rate(2, 3) == 67
    assert dashboard.rate(5, 0) == 0


def test_timeline_slots_frame_the_service():
    service = Service(
        start_time=time(13, 0),
        end_time=time(16, 0),
        default_duration_minutes=60,
        buffer_minutes=10,
        slot_generation_mode="auto",
    )

    assert dashboard.timeline_slots(service) == ["13:00", "14:10", "16:00"]


@pytest.mark.asyncio
async def test_dashboard_stats(admin_client: AsyncClient, test_restaurant, busy_day, booking_date):
    response = await admin_client.get(
        "/admin/dashboard/stats",
        params={"restaurantId": str(test_restaurant.id), "date": booking_date.isoformat()},
    )

    assert response.status_code == 200
    assert response.json() == {
        "totalToday": 2,
        "confirmedCount": 1,
        "pendingCount": 1,
        "cancelledCount": 1,
        "noShowCount": 1,
        "confirmationRate": 50,
        "avgPartySize": 3.0,
        "occupancyRate": 67,
        "totalCovers": 9,
        "totalPending": 1,
        "expiredSessions": 0,
        "nextHourCount": 0,
        "totalTables": 3,
        "totalCapacity": 12,
    }


@pytest.mark.asyncio
async def test_daily_stats_next_hour(test_db, test_restaurant, busy_day, booking_date):
    now = datetime.combine(booking_date, time(13, 30))

    stats = await dashboard.daily_stats(test_db, test_restaurant.id, on_date=booking_date, now=now)

    assert stats.next_hour_count == 1


@pytest.mark.asyncio
async def test_dashboard_requires_restaurant(admin_client: AsyncClient):
    for path in ("/admin/dashboard/stats", "/admin/dashboard/chart-data", "/admin/analytics"):
        response = await admin_client.get(path)

        assert response.status_code == 400
        assert response.json() == {"error": "Se requiere restaurantId"}


@pytest.mark.asyncio
async def test_dashboard_requires_admin(client: AsyncClient, test_restaurant):
    response = await client.get(
        "/admin/dashboard/stats",
        params={"restaurantId": str(test_restaurant.id)},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_chart_data(admin_client: AsyncClient, test_restaurant, busy_day, booking_date):
    response = await admin_client.get(
        "/admin/dashboard/chart-data",
        params={"restaurantId": str(test_restaurant.id), "date": booking_date.isoformat()},
    )

    assert response.status_code == 200
    data = response.json()

    hourly = {bucket["hour"]: bucket for bucket in data["hourly"]["data"]}
    assert sorted(hourly) == list(range(12, 24))
    assert hourly[14] == {
        "hour": 14,
        "label": "14:00",
        "count": 1,
        "confirmed": 1,
        "pending": 0,
        "cancelled": 0,
        "covers": 2,
    }
    assert hourly[20]["cancelled"] == 1
    assert hourly[12]["count"] == 0
    assert data["hourly"]["maxCount"] == 1

    distribution = data["statusDistribution"]
    assert distribution["total"] == 4
    assert distribution["data"] == {"PENDIENTE": 1, "CONFIRMADO": 1, "CANCELADO": 1, "NO_SHOW": 1}
    assert distribution["percentages"]["CONFIRMADO"] == 25


@pytest.mark.asyncio
async def test_analytics_date_range(
    admin_client: AsyncClient,
    test_restaurant,
    busy_day,
    make_reservation,
    booking_date,
):
    next_day = booking_date + timedelta(days=1)
    await make_reservation(
        status="CONFIRMADO",
        reservation_date=next_day,
        reservation_time=time(20, 30),
        party_size=3,
    )

    response = await admin_client.get(
        "/admin/analytics",
        params={
            "restaurantId": str(test_restaurant.id),
            "startDate": (booking_date - timedelta(days=1)).isoformat(),
            "endDate": next_day.isoformat(),
        },
    )

    assert response.status_code == 200
    data = response.json()

    assert data["period"] == {
        "startDate": (booking_date - timedelta(days=1)).isoformat(),
        "endDate": next_day.isoformat(),
        "days": 2,
    }
    assert data["summary"] == {
        "totalReservations": 5,
        "confirmedCount": 2,
        "pendingCount": 1,
        "cancelledCount": 1,
        "noShowCount": 1,
        "totalCovers": 12,
        "avgPartySize": 3.0,
        "confirmationRate": 67,
        "noShowRate": 50,
        "avgOccupancy": 50,
        "totalTables": 3,
        "totalCapacity": 12,
    }
    assert [day["date"] for day in data["dailyBreakdown"]] == [next_day.isoformat(), booking_date.isoformat()]
    assert data["dailyBreakdown"][1]["noShow"] == 1
    assert data["dailyBreakdown"][1]["covers"] == 9
    assert data["hourlyBreakdown"] == [
        {"hour": 13, "count": 1, "covers": 3},
        {"hour": 14, "count": 1, "covers": 2},
        {"hour": 20, "count": 2, "covers": 3},
        {"hour": 21, "count": 1, "covers": 4},
    ]
    assert data["sourceBreakdown"] == {"IVR": 5}


@pytest.mark.asyncio
async def test_analytics_rejects_inverted_range(admin_client: AsyncClient, test_restaurant, booking_date):
    response = await admin_client.get(
        "/admin/analytics",
        params={
            "restaurantId": str(test_restaurant.id),
            "startDate": booking_date.isoformat(),
            "endDate": (booking_date - timedelta(days=2)).isoformat(),
        },
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_occupancy_timeline(admin_client: AsyncClient, test_restaurant, test_tables, busy_day, booking_date):
    response = await admin_client.get(
        "/admin/occupancy-timeline",
        params={
            "date": booking_date.isoformat(),
            "serviceType": "cena",
            "restaurantId": str(test_restaurant.id),
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True

    timeline = data["data"]
    assert timeline["date"] == booking_date.isoformat()
    assert timeline["service"]["name"] == "Cena"
    assert timeline["timeSlots"] == ["20:00", "23:00"]
    assert len(timeline["tables"]) == 3

    medium = test_tables[1]
    assert timeline["reservations"] == [
        {
            "id": str(busy_day["pending"].id),
            "tableIds": [str(medium.id)],
            "tables": [{"id": str(medium.id), "number": "2"}],
            "customerName": "Ana Gómez",
            "partySize": 4,
            "startTime": "21:00",
            "endTime": "22:30",
            "status": "PENDIENTE",
        }
    ]


@pytest.mark.asyncio
async def test_occupancy_timeline_without_service(admin_client: AsyncClient, test_restaurant, booking_date):
    response = await admin_client.get(
        "/admin/occupancy-timeline",
        params={"date": booking_date.isoformat(), "serviceType": "cena", "restaurantId": str(uuid4())},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "No hay servicio configurado para esta fecha"}

    response = await admin_client.get(
        "/admin/occupancy-timeline",
        params={"date": booking_date.isoformat(), "serviceType": "desayuno"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bulk_create_tables(admin_client: AsyncClient, test_restaurant):
    response = await admin_client.post(
        "/admin/tables/bulk",
        json={
            "restaurantId": str(test_restaurant.id),
            "count": 2,
            "capacity": 4,
            "location": "patio",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["count"] == 2
    assert data["errors"] == []
    assert [t["tableNumber"] for t in data["tables"]] == ["M-11", "M-12"]
    assert data["tables"][0]["width"] == 120
    assert data["tables"][0]["location"] == "patio"


@pytest.mark.asyncio
async def test_bulk_create_tables_reports_duplicates(admin_client: AsyncClient, test_restaurant):
    payload = {
        "restaurantId": str(test_restaurant.id),
        "count": 2,
        "capacity": 2,
        "location": "terraza",
        "startingNumber": 12,
    }
    await admin_client.post("/admin/tables/bulk", json={**payload, "count": 1})

    response = await admin_client.post("/admin/tables/bulk", json=payload)

    assert response.status_code == 207
    data = response.json()
    assert [t["tableNumber"] for t in data["tables"]] == ["M-13"]
    assert data["errors"] == [{"tableNumber": "M-12", "error": "El número de mesa ya existe"}]


@pytest.mark.asyncio
async def test_bulk_create_tables_validation(admin_client: AsyncClient, test_restaurant):
    response = await admin_client.post(
        "/admin/tables/bulk",
        json={"restaurantId": str(test_restaurant.id), "count": 51, "capacity": 4, "location": "patio"},
    )
    assert response.status_code == 400

    response = await admin_client.post(
        "/admin/tables/bulk",
        json={"restaurantId": str(uuid4()), "count": 1, "capacity": 4, "location": "patio"},
    )
    assert response.status_code == 404
