"""Paging state management for the windowed list."""

import logging
from typing import Any

from winpager.domain.anchor import Anchor
from winpager.domain.paging import (
    PagingAction,
    PagingComplete,
    PagingPhase,
    PagingState,
    ReachedEnd,
    ReachedStart,
    ResetState,
    ResetToTop,
    ScrollAdjusted,
    ShiftAnchorDown,
    UpdateAnchor,
    UpdateEstimatedTotal,
    paging_reducer,
)

logger = logging.getLogger("WINPAGER.PagingStateManager")


class PagingStateManager:
    """Single owner of the current PagingState.

    Every method dispatches one action through the reducer and returns True
    when the state actually changed.
    """

    def __init__(self, state: PagingState):
        self.state = state

    @property
    def phase(self) -> PagingPhase:
        return self.state.phase

    @property
    def anchor(self) -> Anchor:
        return self.state.anchor

    def dispatch(self, action: PagingAction) -> bool:
        new_state = paging_reducer(self.state, action)
        if new_state is self.state:
            return False
        logger.debug("%s -> %s", type(action).__name__, new_state)
        self.state = new_state
        return True

    def reached_start(self) -> bool:
        return self.dispatch(ReachedStart())

    def reached_end(self) -> bool:
        return self.dispatch(ReachedEnd())

    def update_estimated_total(self, new_total: int) -> bool:
        return self.dispatch(UpdateEstimatedTotal(new_total))

    def update_anchor(self, anchor: Anchor) -> bool:
        return self.dispatch(UpdateAnchor(anchor))

    def shift_anchor_down(self, offset: int, new_anchor: Anchor) -> bool:
        return self.dispatch(ShiftAnchorDown(offset, new_anchor))

    def reset_to_top(self, offset: int) -> bool:
        return self.dispatch(ResetToTop(offset))

    def scroll_adjusted(self) -> bool:
        return self.dispatch(ScrollAdjusted())

    def paging_complete(self) -> bool:
        return self.dispatch(PagingComplete())

    def reset_state(
        self,
        estimated_total: int,
        has_reached_start: bool,
        has_reached_end: bool,
        anchor: Anchor,
        list_context: Any,
    ) -> bool:
        return self.dispatch(
            ResetState(
                estimated_total=estimated_total,
                has_reached_start=has_reached_start,
                has_reached_end=has_reached_end,
                anchor=anchor,
                list_context=list_context,
            )
        )
