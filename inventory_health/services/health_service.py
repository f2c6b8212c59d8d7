from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

HEALTH_PRECISION = Decimal('0.01')
ZERO_HEALTH = Decimal('0.00')


def calculate_health_percentage(available: int, minimum_quantity: int) -> Decimal:
    """Percentage of stock above (or below) the minimum, relative to the minimum.

    A zero minimum means no target is configured, so there is no health signal.
    The result is unbounded: negative below the minimum, over 100 above twice it.
    """
    if minimum_quantity == 0:
        return ZERO_HEALTH

    ratio = (Decimal(available) - Decimal(minimum_quantity)) / Decimal(minimum_quantity)
    return (ratio * 100).quantize(HEALTH_PRECISION, rounding=ROUND_HALF_UP)
