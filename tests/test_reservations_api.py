"""Tests for the public reservation endpoints"""

import pytest
from httpx import AsyncClient
from uuid import uuid4

from app.api.auth import create_access_token
from app.models import Customer


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["checks"] == {"database": "ok"}


@pytest.mark.asyncio
async def test_create_reservation(client: AsyncClient, test_restaurant, booking_date):
    """A booking from the phone line starts pending with a shareable code"""
    response = await client.post(
        "/reservations",
        json={
            "customerName": "Carlos Ruiz",
            "customerPhone": "310 555 1234",
            "restaurantId": str(test_restaurant.id),
            "reservationDate": booking_date.isoformat(),
            "reservationTime": "20:30",
            "partySize": 2,
            "specialRequests": "cumpleaños",
            "source": "WEB",
        },
    )

    assert response.status_code == 201
    data = response.json()["reservation"]
    assert data["status"] == "PENDIENTE"
    assert data["reservationCode"].startswith("RES-")
    assert data["reservationTime"] == "20:30"
    assert data["customerPhone"] == "3105551234"
    assert data["source"] == "WEB"
    assert len(data["tableIds"]) == 1


@pytest.mark.asyncio
async def test_create_reservation_invalid_phone(client: AsyncClient, test_restaurant, booking_date):
    response = await client.post(
        "/reservations",
        json={
            "customerName": "Carlos Ruiz",
            "customerPhone": "12345",
            "restaurantId": str(test_restaurant.id),
            "reservationDate": booking_date.isoformat(),
            "reservationTime": "20:30",
            "partySize": 2,
        },
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Datos inválidos"
    assert data["details"][0]["loc"][-1] == "customerPhone"


@pytest.mark.asyncio
async def test_create_reservation_no_service(client: AsyncClient, test_restaurant, booking_date):
    response = await client.post(
        "/reservations",
        json={
            "customerName": "Carlos Ruiz",
            "customerPhone": "3105551234",
            "restaurantId": str(test_restaurant.id),
            "reservationDate": booking_date.isoformat(),
            "reservationTime": "10:00",
            "partySize": 2,
        },
    )

    assert response.status_code == 409
    assert response.json()["error"] == "No hay disponibilidad para la fecha y hora seleccionadas"


@pytest.mark.asyncio
async def test_availability_check(client: AsyncClient, test_restaurant, booking_date):
    response = await client.get(
        "/reservations/availability/check",
        params={
            "restaurantId": str(test_restaurant.id),
            "date": booking_date.isoformat(),
            "time": "13:30",
            "partySize": 4,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["available"] is True
    assert data["serviceName"] == "Comida"
    assert len(data["suggestedTables"]) == 1


@pytest.mark.asyncio
async def test_lookup_by_code(client: AsyncClient, test_db, make_reservation):
    reservation = await make_reservation()
    reservation.reservation_code = "RES-AB12C"
    await test_db.commit()

    response = await client.get("/reservations/code/res-ab12c")

    assert response.status_code == 200
    assert response.json()["reservation"]["id"] == str(reservation.id)

    response = await client.get("/reservations/code/RES-ZZZZZ")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_by_phone(client: AsyncClient, make_reservation):
    reservation = await make_reservation()

    response = await client.get("/reservations", params={"phone": "+57 300 123 4567"})

    assert response.status_code == 200
    data = response.json()
    assert [r["id"] for r in data["reservations"]] == [str(reservation.id)]
    assert data["meta"]["count"] == 1


@pytest.mark.asyncio
async def test_update_and_cancel(client: AsyncClient, make_reservation):
    reservation = await make_reservation()

    response = await client.put(
        f"/reservations/{reservation.id}",
        json={"partySize": 3, "reservationTime": "14:30"},
    )
    assert response.status_code == 200
    data = response.json()["reservation"]
    assert data["partySize"] == 3
    assert data["reservationTime"] == "14:30"

    response = await client.delete(f"/reservations/{reservation.id}")
    assert response.status_code == 200
    assert response.json()["reservation"]["status"] == "CANCELADO"


@pytest.mark.asyncio
async def test_get_unknown_reservation(client: AsyncClient, test_restaurant):
    response = await client.get(f"/reservations/{uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"error": "Reserva no encontrada"}


@pytest.mark.asyncio
async def test_status_change_requires_admin(client: AsyncClient, make_reservation):
    reservation = await make_reservation()

    response = await client.put(f"/reservations/{reservation.id}", json={"status": "CONFIRMADO"})

    assert response.status_code == 401
    assert response.json() == {"error": "No autorizado"}

    token = create_access_token(str(uuid4()), email="admin@elposit.co")
    response = await client.put(
        f"/reservations/{reservation.id}",
        json={"status": "CONFIRMADO"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    assert response.json()["reservation"]["status"] == "CONFIRMADO"


@pytest.mark.asyncio
async def test_update_phone_already_registered(client: AsyncClient, test_db, make_reservation):
    """Moving a booking to a number another guest already uses is not an error"""
    test_db.add(Customer(phone_number="3109876543", name="Luis Pérez"))
    await test_db.commit()
    reservation = await make_reservation()

    response = await client.put(
        f"/reservations/{reservation.id}",
        json={"customerPhone": "3109876543"},
    )

    assert response.status_code == 200
    assert response.json()["reservation"]["customerPhone"] == "3109876543"
