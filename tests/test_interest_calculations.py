from datetime import date
from decimal import Decimal

import pytest

from jewel_ledger.core.exceptions import ValidationError
from jewel_ledger.utils.interest_calculations import (
    compute_interest_for_period,
    compute_monthly_interest,
    months_elapsed,
    paise_to_rupees,
)


@pytest.mark.parametrize(
    "outstanding, rate, expected",
    [
        (100000, 2, 2000),
        (100001, 2, 2000),  # 2000.02
        (100025, 2, 2001),  # 2000.50 rounds half up
        (100024, 2, 2000),  # 2000.48
        (12345, Decimal("1.5"), 185),  # 185.175
        (0, 2, 0),
        (100000, 0, 0),
    ],
)
def test_monthly_interest(outstanding, rate, expected):
    assert compute_monthly_interest(outstanding, rate) == expected


def test_rate_given_as_string_or_float():
    assert compute_monthly_interest(100000, "2.5") == 2500
    assert compute_monthly_interest(100000, 2.5) == 2500


@pytest.mark.parametrize("outstanding", [-1, 10.5, "100", True])
def test_bad_outstanding_rejected(outstanding):
    with pytest.raises(ValidationError):
        compute_monthly_interest(outstanding, 2)


@pytest.mark.parametrize("rate", [-1, "abc", None, "NaN", "Infinity"])
def test_bad_rate_rejected(rate):
    with pytest.raises(ValidationError):
        compute_monthly_interest(100000, rate)


def test_months_elapsed():
    assert months_elapsed(date(2024, 1, 15), date(2024, 1, 15)) == 0
    assert months_elapsed(date(2024, 1, 15), date(2024, 2, 14)) == 0
    assert months_elapsed(date(2024, 1, 15), date(2024, 2, 15)) == 1
    assert months_elapsed(date(2024, 1, 31), date(2025, 3, 31)) == 14
    assert months_elapsed(date(2024, 3, 1), date(2024, 1, 1)) == 0


def test_interest_for_period():
    assert compute_interest_for_period(100000, 2, date(2024, 1, 1), date(2024, 4, 1)) == 6000
    assert compute_interest_for_period(100000, 2, date(2024, 1, 1), date(2024, 1, 20)) == 0


def test_paise_to_rupees():
    assert paise_to_rupees(123456) == Decimal("1234.56")
    assert paise_to_rupees(5) == Decimal("0.05")
