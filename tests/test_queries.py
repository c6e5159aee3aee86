"""Tests for the pending queue, admin listing and code lookup"""

import pytest
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.config import settings
from app.exceptions import NotFoundError
from app.services import queries
from app.utils import local_now


@pytest.mark.asyncio
async def test_pending_queue_window_and_stats(test_db, make_reservation):
    """Only pending reservations in [today, today + days] are queued"""
    today = date.today()
    now = datetime.combine(today, time(13, 30))
    utc_now = datetime.utcnow()

    soon = await make_reservation(reservation_date=today, reservation_time=time(14, 0))
    earlier = await make_reservation(
        reservation_date=today,
        reservation_time=time(12, 0),
        session_expires_at=utc_now - timedelta(minutes=1),
    )
    later = await make_reservation(reservation_date=today + timedelta(days=3))
    await make_reservation(reservation_date=today + timedelta(days=10))
    await make_reservation(reservation_date=today - timedelta(days=1))
    await make_reservation(reservation_date=today, status="CONFIRMADO")

    queue = await queries.pending_queue(test_db, days_ahead=7, today=today, now=now, utc_now=utc_now)

    assert [r.id for r in queue.reservations] == [later.id, soon.id, earlier.id]
    assert queue.stats == {
        "total_pending": 3,
        "today_pending": 2,
        "expired_sessions": 1,
        "next_hour": 1,
    }
    assert queue.expired_session_ids == [earlier.id]


@pytest.mark.asyncio
async def test_pending_queue_reports_but_keeps_expired(test_db, make_reservation):
    """Expired holds are reported without being cancelled"""
    utc_now = datetime.utcnow()
    reservation = await make_reservation(session_expires_at=utc_now - timedelta(hours=1))

    queue = await queries.pending_queue(test_db, utc_now=utc_now)

    assert queue.expired_session_ids == [reservation.id]
    assert queue.reservations[0].status == "PENDIENTE"


@pytest.mark.asyncio
async def test_pending_queue_window_is_inclusive(test_db, make_reservation):
    today = date.today()
    now = datetime.combine(today, time(9, 0))

    last_day = await make_reservation(reservation_date=today + timedelta(days=7))
    await make_reservation(reservation_date=today + timedelta(days=8))
    first_day = await make_reservation(reservation_date=today, reservation_time=time(20, 0))

    queue = await queries.pending_queue(test_db, days_ahead=7, today=today, now=now)

    assert [r.id for r in queue.reservations] == [last_day.id, first_day.id]


@pytest.mark.asyncio
async def test_pending_queue_zero_days_is_today_only(test_db, make_reservation):
    today = date.today()
    todays = await make_reservation(reservation_date=today, reservation_time=time(21, 0))
    await make_reservation(reservation_date=today + timedelta(days=1))

    queue = await queries.pending_queue(test_db, days_ahead=0, today=today, now=datetime.combine(today, time(9, 0)))

    assert [r.id for r in queue.reservations] == [todays.id]


@pytest.mark.asyncio
async def test_pending_queue_default_window_from_settings(test_db, make_reservation, monkeypatch):
    monkeypatch.setattr(settings, "pending_days_ahead", 2)
    today = local_now().date()

    inside = await make_reservation(reservation_date=today + timedelta(days=2))
    await make_reservation(reservation_date=today + timedelta(days=3))

    queue = await queries.pending_queue(test_db)

    assert [r.id for r in queue.reservations] == [inside.id]


@pytest.mark.asyncio
async def test_pending_queue_today_follows_restaurant_timezone(test_db, make_reservation, monkeypatch):
    """'Today' is the restaurant's date, not the server's"""
    monkeypatch.setattr(settings, "default_timezone", "Pacific/Kiritimati")
    local_today = datetime.now(ZoneInfo("Pacific/Kiritimati")).date()

    todays = await make_reservation(reservation_date=local_today, reservation_time=time(23, 59))
    await make_reservation(reservation_date=local_today - timedelta(days=1))

    queue = await queries.pending_queue(test_db, days_ahead=0)

    assert [r.id for r in queue.reservations] == [todays.id]
    assert queue.stats["today_pending"] == 1


def test_local_now_uses_configured_timezone(monkeypatch):
    monkeypatch.setattr(settings, "default_timezone", "America/Bogota")

    expected = datetime.now(ZoneInfo("America/Bogota")).replace(tzinfo=None)

    assert local_now().tzinfo is None
    assert abs(local_now() - expected) < timedelta(seconds=5)


@pytest.mark.asyncio
async def test_admin_list_default_page_size(test_db, make_reservation, monkeypatch):
    monkeypatch.setattr(settings, "admin_page_size", 2)
    for _ in range(3):
        await make_reservation()

    reservations, pending_count = await queries.admin_list(test_db)

    assert len(reservations) == 2
    assert pending_count == 3


@pytest.mark.asyncio
async def test_admin_list_pending_count_is_global(test_db, make_reservation):
    """pendingCount ignores the listing filters"""
    await make_reservation()
    await make_reservation()
    confirmed = await make_reservation(status="CONFIRMADO")

    reservations, pending_count = await queries.admin_list(test_db, status="CONFIRMADO")

    assert [r.id for r in reservations] == [confirmed.id]
    assert pending_count == 2


@pytest.mark.asyncio
async def test_admin_list_paging(test_db, make_reservation):
    """Newest reservation date first, then paged"""
    today = date.today()
    for days in range(1, 5):
        await make_reservation(reservation_date=today + timedelta(days=days))

    first_page, _ = await queries.admin_list(test_db, limit=2, offset=0)
    second_page, _ = await queries.admin_list(test_db, limit=2, offset=2)

    assert [r.reservation_date for r in first_page] == [today + timedelta(days=4), today + timedelta(days=3)]
    assert [r.reservation_date for r in second_page] == [today + timedelta(days=2), today + timedelta(days=1)]


@pytest.mark.asyncio
async def test_list_reservations_by_phone(test_db, make_reservation):
    reservation = await make_reservation()

    found = await queries.list_reservations(test_db, phone="3001234567")
    missing = await queries.list_reservations(test_db, phone="3109999999")

    assert [r.id for r in found] == [reservation.id]
    assert missing == []


@pytest.mark.asyncio
async def test_find_by_code_normalizes_input(test_db, make_reservation):
    """Lowercase input with the prefix still matches"""
    reservation = await make_reservation()
    reservation.reservation_code = "RES-AB12C"
    await test_db.commit()

    assert (await queries.find_by_code(test_db, "res-ab12c")).id == reservation.id
    assert (await queries.find_by_code(test_db, " AB12C ")).id == reservation.id


@pytest.mark.asyncio
async def test_find_by_code_missing(test_db, test_restaurant):
    with pytest.raises(NotFoundError):
        await queries.find_by_code(test_db, "RES-ZZZZZ")
