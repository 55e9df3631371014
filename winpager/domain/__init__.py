"""Paging domain: anchors, windows, paging state and snapshots."""

from .anchor import (
    TOP_ANCHOR,
    Anchor,
    BackwardAnchor,
    ForwardAnchor,
    PermalinkAnchor,
    anchor_from_dict,
    anchor_to_dict,
    permalink_anchor,
    with_index,
)
from .errors import PageSourceError, PagingInvariantError, require
from .list_context import ItemListContext
from .paging import PagingPhase, PagingState, QueryAnchor, paging_reducer
from .snapshot import PagingSnapshot
from .window import Window

__all__ = [
    "TOP_ANCHOR",
    "Anchor",
    "BackwardAnchor",
    "ForwardAnchor",
    "PermalinkAnchor",
    "anchor_from_dict",
    "anchor_to_dict",
    "permalink_anchor",
    "with_index",
    "PageSourceError",
    "PagingInvariantError",
    "require",
    "ItemListContext",
    "PagingPhase",
    "PagingState",
    "QueryAnchor",
    "paging_reducer",
    "PagingSnapshot",
    "Window",
]
