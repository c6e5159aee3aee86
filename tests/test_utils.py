"""Tests for shared helpers"""

import re
import pytest
from datetime import date, time

from app.exceptions import ValidationError
from app.utils import (
    format_date_es,
    format_hhmm,
    generate_reservation_code,
    is_valid_colombian_phone,
    normalize_phone_number,
    normalize_reservation_code,
    parse_hhmm,
    with_retry,
)


def test_generate_reservation_code():
    """Codes avoid ambiguous characters"""
    for _ in range(50):
        assert re.fullmatch(r"RES-[ABCDEFGHJKLMNPQRSTUVWXYZ23456789]{5}", generate_reservation_code())


def test_normalize_reservation_code():
    assert normalize_reservation_code("res-ab12c") == "RES-AB12C"
    assert normalize_reservation_code("ab12c") == "RES-AB12C"
    assert normalize_reservation_code("  RES-AB12C ") == "RES-AB12C"


def test_normalize_phone_number():
    assert normalize_phone_number("300 123 4567") == "3001234567"
    assert normalize_phone_number("+57 (300) 123-4567") == "3001234567"
    assert normalize_phone_number("573001234567") == "3001234567"

    with pytest.raises(ValidationError):
        normalize_phone_number("12345")


def test_is_valid_colombian_phone():
    assert is_valid_colombian_phone("3001234567")
    assert not is_valid_colombian_phone("6011234567")


def test_time_helpers():
    assert parse_hhmm("08:05") == time(8, 5)
    assert format_hhmm(time(20, 30)) == "20:30"


def test_format_date_es():
    assert format_date_es(date(2025, 6, 1)) == "domingo, 1 de junio de 2025"


@pytest.mark.asyncio
async def test_with_retry_recovers():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("timeout")
        return "ok"

    assert await with_retry(flaky, max_retries=3, delay=0) == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_with_retry_raises_last_error():
    attempts = []

    async def failing():
        attempts.append(1)
        raise ConnectionError(f"attempt {len(attempts)}")

    with pytest.raises(ConnectionError, match="attempt 2"):
        await with_retry(failing, max_retries=2, delay=0)

    assert len(attempts) == 2
