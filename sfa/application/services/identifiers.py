"""Generated business identifiers: payment numbers, order numbers, cooler codes."""

import secrets
import string
import time
from datetime import datetime
from typing import Optional

import pytz

from sfa.config import get_settings
from sfa.domain.repositories.payment_repository import PaymentRepository

settings = get_settings()
tz = pytz.timezone(settings.TIMEZONE)

ALPHABET = string.ascii_uppercase + string.digits


def _random_code(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def date_stamp(now: Optional[datetime] = None) -> str:
    """YYYYMMDD of ``now`` in the configured timezone."""
    now = now or datetime.now(tz)
    if now.tzinfo is not None:
        now = now.astimezone(tz)
    return now.strftime("%Y%m%d")


def next_payment_number(payments: PaymentRepository, now: Optional[datetime] = None) -> str:
    """``PAY-YYYYMMDD-NNN``, one past the day's highest sequence.

    When that number is already taken (a row with a suffixed number can hold
    the highest sequence) the last four digits of the epoch-ms clock are
    appended. The unique constraint remains the final arbiter.
    """
    prefix = f"PAY-{date_stamp(now)}-"
    sequence = payments.max_sequence_for_prefix(prefix) + 1
    number = f"{prefix}{sequence:03d}"
    if payments.get_by_unique_key(number) is not None:
        number = f"{number}-{str(int(time.time() * 1000))[-4:]}"
    return number


def generate_order_number(now: Optional[datetime] = None) -> str:
    return f"ORD-{date_stamp(now)}-{_random_code(6)}"


def generate_cooler_code() -> str:
    return f"COOL-{_random_code(9)}"
