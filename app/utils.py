"""Shared helpers: reservation codes, phone numbers, retries"""

import asyncio
import random
import re
from datetime import date, datetime, time
from typing import Awaitable, Callable, Optional, TypeVar
from zoneinfo import ZoneInfo

import structlog

from app.config import settings
from app.exceptions import ValidationError

logger = structlog.get_logger()

T = TypeVar("T")

CODE_PREFIX = "RES-"
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no 0/O, 1/I
CODE_LENGTH = 5

MONTHS_ES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]
WEEKDAYS_ES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]


def generate_reservation_code() -> str:
    """Generate a human-shareable code such as RES-7KQ2M"""
    suffix = "".join(random.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return f"{CODE_PREFIX}{suffix}"


def normalize_reservation_code(code: str) -> str:
    """Upper-case a user-entered code and make sure it carries exactly one RES- prefix"""
    cleaned = code.strip().upper()
    if cleaned.startswith(CODE_PREFIX):
        cleaned = cleaned[len(CODE_PREFIX):]
    return f"{CODE_PREFIX}{cleaned}"


def normalize_phone_number(phone: str) -> str:
    """
    Normalize a Colombian mobile number to its 10 local digits.

    Accepts formatting characters and an optional 57 country prefix.
    """
    cleaned = re.sub(r"\D", "", phone)
    if cleaned.startswith("57") and len(cleaned) == 12:
        return cleaned[2:]
    if len(cleaned) == 10:
        return cleaned
    raise ValidationError("Número de teléfono inválido")


def is_valid_colombian_phone(phone: str) -> bool:
    cleaned = re.sub(r"\D", "", phone)
    return len(cleaned) == 10 and cleaned.startswith("3")


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM string"""
    hours, minutes = value.split(":")[:2]
    return time(int(hours), int(minutes))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    return time((minutes // 60) % 24, minutes % 60)


def local_now(timezone: Optional[str] = None) -> datetime:
    """Naive wall-clock time in the restaurant timezone (settings.default_timezone by default)"""
    zone = ZoneInfo(timezone or settings.default_timezone)
    return datetime.now(zone).replace(tzinfo=None)


def format_date_es(value: date) -> str:
    """Long Spanish date, e.g. 'domingo, 1 de junio de 2025'"""
    return f"{WEEKDAYS_ES[value.weekday()]}, {value.day} de {MONTHS_ES[value.month - 1]} de {value.year}"


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
    operation: Optional[str] = None,
) -> T:
    """
    Run an async operation up to max_retries times.

    Waits delay * attempt seconds between attempts and re-raises the last
    error once the attempts are exhausted.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            last_error = e
            logger.warning(
                "Retryable operation failed",
                operation=operation,
                attempt=attempt,
                max_retries=max_retries,
                error=str(e),
            )
            if attempt < max_retries:
                await asyncio.sleep(delay * attempt)
    raise last_error
