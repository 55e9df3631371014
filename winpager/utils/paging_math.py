"""Index and size arithmetic shared by the coordinator."""

import math
from typing import Optional, Tuple


def make_even(n: int) -> int:
    return n if n % 2 == 0 else n + 1


def compute_page_size(viewport_height: float, row_height: float, min_page_size: int) -> int:
    """Enough rows to fill the viewport three times, never below the minimum."""
    if viewport_height <= 0 or row_height <= 0:
        return min_page_size
    return max(min_page_size, make_even(math.ceil(viewport_height / row_height) * 3))


def near_edge_threshold(page_size: int, divisor: int = 10) -> int:
    return math.ceil(page_size / divisor)


def to_bound_index(target_index: int, first_index: int, length: int) -> int:
    """Clamp ``target_index`` into ``[first_index, first_index + length - 1]``."""
    if length == 0:
        return first_index
    return max(first_index, min(first_index + length - 1, target_index))


def rendered_range(
    scroll_offset: float,
    viewport_height: float,
    row_height: float,
    row_count: int,
    overscan: int = 0,
) -> Optional[Tuple[int, int]]:
    """Inclusive index range rendered for the viewport, or None when nothing is."""
    if viewport_height <= 0 or row_height <= 0 or row_count <= 0:
        return None
    first_visible = max(0, int(scroll_offset // row_height))
    last_visible = max(
        first_visible, math.ceil((scroll_offset + viewport_height) / row_height) - 1
    )
    start = max(0, first_visible - overscan)
    end = min(row_count - 1, last_visible + overscan)
    if start > end:
        return None
    return start, end
