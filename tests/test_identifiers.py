import re
from datetime import datetime

import pytz

from sfa.application.services.identifiers import (
    date_stamp,
    generate_cooler_code,
    generate_order_number,
    next_payment_number,
)


class DummyPayments:
    def __init__(self, highest=0, taken=()):
        self.highest = highest
        self.taken = set(taken)
        self.prefixes = []

    def max_sequence_for_prefix(self, prefix):
        self.prefixes.append(prefix)
        return self.highest

    def get_by_unique_key(self, key):
        return object() if key in self.taken else None


NOW = pytz.timezone("Asia/Kolkata").localize(datetime(2024, 5, 2, 10, 0))


def test_date_stamp_uses_configured_timezone():
    utc_late = pytz.utc.localize(datetime(2024, 5, 1, 22, 0))
    assert date_stamp(utc_late) == "20240502"


def test_first_payment_number_of_the_day():
    payments = DummyPayments()
    assert next_payment_number(payments, NOW) == "PAY-20240502-001"
    assert payments.prefixes == ["PAY-20240502-"]


def test_payment_number_follows_highest_sequence():
    assert next_payment_number(DummyPayments(highest=41), NOW) == "PAY-20240502-042"


def test_taken_payment_number_gets_suffix():
    number = next_payment_number(DummyPayments(highest=2, taken={"PAY-20240502-003"}), NOW)
    assert re.fullmatch(r"PAY-20240502-003-\d{4}", number)


def test_order_number_format():
    assert re.fullmatch(r"ORD-20240502-[A-Z0-9]{6}", generate_order_number(NOW))


def test_cooler_code_format():
    codes = {generate_cooler_code() for _ in range(20)}
    assert all(re.fullmatch(r"COOL-[A-Z0-9]{9}", code) for code in codes)
    assert len(codes) > 1
