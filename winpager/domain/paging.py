"""Paging state and its pure transition function.

The state is an explicit, serializable value. Every mutation is an action
passed through :func:`paging_reducer`, which always returns a whole new state
(or the same object when the action changes nothing), so a failed transition
can never leave a half-updated state behind.

The ``phase`` field coordinates scroll compensation::

    idle --ShiftAnchorDown/ResetToTop--> adjusting
    adjusting --ScrollAdjusted--> skipping
    skipping --PagingComplete--> idle

Edge detection only runs while ``idle``, so a compensation applied in one pass
cannot race with the edge check that caused it.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Union

from .anchor import TOP_ANCHOR, Anchor


class PagingPhase(str, Enum):
    IDLE = "idle"
    ADJUSTING = "adjusting"
    SKIPPING = "skipping"


@dataclass(frozen=True)
class QueryAnchor:
    """An anchor tagged with the list-context it was computed against."""

    anchor: Anchor
    list_context: Any


@dataclass(frozen=True)
class PagingState:
    estimated_total: int
    has_reached_start: bool
    has_reached_end: bool
    query_anchor: QueryAnchor
    phase: PagingPhase = PagingPhase.IDLE
    pending_scroll_adjustment: int = 0

    @property
    def anchor(self) -> Anchor:
        return self.query_anchor.anchor

    @property
    def list_context(self) -> Any:
        return self.query_anchor.list_context

    @property
    def exact_total(self) -> Optional[int]:
        if self.has_reached_start and self.has_reached_end:
            return self.estimated_total
        return None

    @classmethod
    def initial(
        cls,
        list_context: Any,
        anchor: Anchor = TOP_ANCHOR,
        estimated_total: int = 0,
        has_reached_start: bool = False,
        has_reached_end: bool = False,
        phase: PagingPhase = PagingPhase.IDLE,
    ) -> "PagingState":
        return cls(
            estimated_total=estimated_total,
            has_reached_start=has_reached_start,
            has_reached_end=has_reached_end,
            query_anchor=QueryAnchor(anchor=anchor, list_context=list_context),
            phase=phase,
        )


@dataclass(frozen=True)
class UpdateEstimatedTotal:
    new_total: int


@dataclass(frozen=True)
class ReachedStart:
    pass


@dataclass(frozen=True)
class ReachedEnd:
    pass


@dataclass(frozen=True)
class UpdateAnchor:
    anchor: Anchor


@dataclass(frozen=True)
class ShiftAnchorDown:
    offset: int
    new_anchor: Anchor


@dataclass(frozen=True)
class ResetToTop:
    offset: int


@dataclass(frozen=True)
class ScrollAdjusted:
    pass


@dataclass(frozen=True)
class PagingComplete:
    pass


@dataclass(frozen=True)
class ResetState:
    estimated_total: int
    has_reached_start: bool
    has_reached_end: bool
    anchor: Anchor
    list_context: Any


PagingAction = Union[
    UpdateEstimatedTotal,
    ReachedStart,
    ReachedEnd,
    UpdateAnchor,
    ShiftAnchorDown,
    ResetToTop,
    ScrollAdjusted,
    PagingComplete,
    ResetState,
]


def paging_reducer(state: PagingState, action: PagingAction) -> PagingState:
    if isinstance(action, UpdateEstimatedTotal):
        new_total = max(state.estimated_total, action.new_total)
        if new_total == state.estimated_total:
            return state
        return replace(state, estimated_total=new_total)

    if isinstance(action, ReachedStart):
        if state.has_reached_start:
            return state
        return replace(state, has_reached_start=True)

    if isinstance(action, ReachedEnd):
        if state.has_reached_end:
            return state
        return replace(state, has_reached_end=True)

    if isinstance(action, UpdateAnchor):
        if action.anchor == state.anchor:
            return state
        return replace(
            state, query_anchor=replace(state.query_anchor, anchor=action.anchor)
        )

    if isinstance(action, ShiftAnchorDown):
        return replace(
            state,
            query_anchor=replace(state.query_anchor, anchor=action.new_anchor),
            pending_scroll_adjustment=action.offset,
            phase=PagingPhase.ADJUSTING,
        )

    if isinstance(action, ResetToTop):
        return replace(
            state,
            query_anchor=replace(state.query_anchor, anchor=TOP_ANCHOR),
            pending_scroll_adjustment=action.offset,
            phase=PagingPhase.ADJUSTING,
        )

    if isinstance(action, ScrollAdjusted):
        return replace(
            state,
            estimated_total=max(
                0, state.estimated_total + state.pending_scroll_adjustment
            ),
            pending_scroll_adjustment=0,
            phase=PagingPhase.SKIPPING,
        )

    if isinstance(action, PagingComplete):
        if state.phase == PagingPhase.IDLE:
            return state
        return replace(state, phase=PagingPhase.IDLE)

    if isinstance(action, ResetState):
        return PagingState(
            estimated_total=action.estimated_total,
            has_reached_start=action.has_reached_start,
            has_reached_end=action.has_reached_end,
            query_anchor=QueryAnchor(
                anchor=action.anchor, list_context=action.list_context
            ),
            phase=PagingPhase.SKIPPING,
            pending_scroll_adjustment=0,
        )

    raise TypeError(f"Unknown paging action: {type(action).__name__}")
