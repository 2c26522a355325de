"""Currency conversion with the single current exchange rate (Bs per USD)."""

from decimal import ROUND_HALF_UP, Decimal


CENTS = Decimal("0.01")


def _check_rate(rate: Decimal) -> Decimal:
    rate = Decimal(rate)
    if not rate.is_finite() or rate <= 0:
        raise ValueError(f"Exchange rate must be positive, got {rate}")
    return rate


def to_foreign(amount_local: Decimal, rate: Decimal) -> Decimal:
    """Convert Bolívares to US dollars."""
    rate = _check_rate(rate)
    return (Decimal(amount_local) / rate).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_local(amount_foreign: Decimal, rate: Decimal) -> Decimal:
    """Convert US dollars to Bolívares."""
    rate = _check_rate(rate)
    return (Decimal(amount_foreign) * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
