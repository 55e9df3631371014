"""Utility functions."""

from .formatting import format_item_count, round_estimate
from .paging_math import (
    compute_page_size,
    make_even,
    near_edge_threshold,
    rendered_range,
    to_bound_index,
)

__all__ = [
    "format_item_count",
    "round_estimate",
    "compute_page_size",
    "make_even",
    "near_edge_threshold",
    "rendered_range",
    "to_bound_index",
]
