"""Text formatting utilities."""

import math
from typing import Optional


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_estimate(estimated_total: int, granularity: int = 50) -> int:
    """Round to the granularity, then to two significant figures."""
    stepped = _round_half_up(estimated_total / granularity) * granularity
    if stepped <= 0:
        return 0
    exponent = int(math.floor(math.log10(stepped))) - 1
    if exponent <= 0:
        return stepped
    factor = 10 ** exponent
    return _round_half_up(stepped / factor) * factor


def format_item_count(
    total: Optional[int], estimated_total: int, granularity: int = 50
) -> str:
    if total is not None:
        return f"({total})"
    return f"(~{round_estimate(estimated_total, granularity)})"
