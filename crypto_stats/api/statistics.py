"""
Price statistics used by the deviation endpoint.
"""

import math
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, localcontext


def population_std_dev(values: Sequence[float]) -> float:
    """
    Population standard deviation (divisor N, not N - 1).

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("population_std_dev requires at least one value")

    count = len(values)
    mean = sum(values) / count
    variance = sum((value - mean) ** 2 for value in values) / count
    return math.sqrt(variance)


def round_half_away_from_zero(value: float, places: int = 2) -> float:
    """
    Round using the float's shortest decimal form, ties away from zero.

    ``round(2.675, 2)`` gives 2.67 because of binary representation; this
    gives 2.68, matching how the value reads.
    """
    decimal_value = Decimal(str(value))
    quantum = Decimal(1).scaleb(-places)

    with localcontext() as context:
        # quantize needs room for every integer digit plus the decimals
        context.prec = max(context.prec, decimal_value.adjusted() + places + 2)
        return float(decimal_value.quantize(quantum, rounding=ROUND_HALF_UP))
