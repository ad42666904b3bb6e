from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from jewel_ledger.core.exceptions import ValidationError


def paise(x) -> int:
    """Validate a minor-unit amount: a non-negative int (bools rejected)."""
    if isinstance(x, bool) or not isinstance(x, int):
        raise ValidationError(f"amount must be an integer number of paise, got {x!r}")
    if x < 0:
        raise ValidationError(f"amount must be >= 0, got {x}")
    return x


def rate(x) -> Decimal:
    if x is None:
        raise ValidationError("rate is required")
    try:
        r = x if isinstance(x, Decimal) else Decimal(str(x))
    except InvalidOperation:
        raise ValidationError(f"rate must be a number, got {x!r}")
    if not r.is_finite() or r < 0:
        raise ValidationError(f"rate must be >= 0, got {x}")
    return r


def compute_monthly_interest(outstanding_principal: int, monthly_rate_percent) -> int:
    """
    monthly_interest = outstanding * rate% / 100, rounded HALF_UP to the paisa.

    Example:
      outstanding=100001, rate=2 => 2000.02 => 2000
    """
    principal = paise(outstanding_principal)
    r = rate(monthly_rate_percent)
    if principal == 0 or r == 0:
        return 0
    raw = Decimal(principal) * r / Decimal("100")
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def months_elapsed(start: date, as_on: date) -> int:
    """Completed calendar months between two dates (0 if as_on <= start)."""
    if as_on <= start:
        return 0
    months = (as_on.year - start.year) * 12 + (as_on.month - start.month)
    if as_on.day < start.day:
        months -= 1
    return max(months, 0)


def compute_interest_for_period(outstanding_principal: int, monthly_rate_percent, start: date, as_on: date) -> int:
    return compute_monthly_interest(outstanding_principal, monthly_rate_percent) * months_elapsed(start, as_on)


def paise_to_rupees(amount: int) -> Decimal:
    return (Decimal(amount) / Decimal("100")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
