"""Viewport coordination for the windowed list.

The coordinator sits between the host's viewport and the paging state. Every
viewport signal or query result triggers a reconcile, which repeatedly looks at
the current window and dispatches at most one state transition per pass until
nothing is left to do. A pass checks, in order:

1. a pending scroll compensation (applied to the viewport first),
2. the window's start/end boundaries (sticky flags),
3. the total estimate,
4. anchor correction (negative first index, start reached below index 0),
5. edge proximity of the rendered range (re-anchoring).
"""

import asyncio
import logging
from typing import Any, Optional, Tuple

from winpager.config.settings import PagingSettings
from winpager.core.protocols import (
    CursorExtractor,
    PageSource,
    RowKeyExtractor,
    SnapshotCallback,
    ViewportPort,
)
from winpager.domain.anchor import (
    TOP_ANCHOR,
    Anchor,
    BackwardAnchor,
    ForwardAnchor,
    permalink_anchor,
    with_index,
)
from winpager.domain.errors import require
from winpager.domain.paging import PagingPhase, PagingState
from winpager.domain.snapshot import PagingSnapshot
from winpager.domain.window import Window
from winpager.managers.paging_state_manager import PagingStateManager
from winpager.services.window_materializer import WindowMaterializer
from winpager.utils.formatting import format_item_count
from winpager.utils.paging_math import (
    compute_page_size,
    near_edge_threshold,
    rendered_range,
    to_bound_index,
)

logger = logging.getLogger("WINPAGER.ViewportCoordinator")


class ViewportCoordinator:
    def __init__(
        self,
        page_source: PageSource,
        extract_cursor: CursorExtractor,
        list_context: Any,
        viewport: ViewportPort,
        settings: Optional[PagingSettings] = None,
        row_key: Optional[RowKeyExtractor] = None,
        permalink_id: Optional[str] = None,
        snapshot: Optional[PagingSnapshot] = None,
        on_snapshot: Optional[SnapshotCallback] = None,
        estimate_granularity: int = 50,
    ):
        """Initialize ViewportCoordinator.

        Args:
            page_source: Executes page and id queries
            extract_cursor: Projects a record to the cursor used to resume from it
            list_context: Sort/filter parameters of the list being shown
            viewport: Host viewport used for row height and scroll commands
            settings: Paging settings, defaults when omitted
            row_key: Projects a record to the host's stable row key
            permalink_id: Record to open the list at, when no snapshot is given
            snapshot: Previously persisted session to restore
            on_snapshot: Receives debounced snapshots as ``(list_context, snapshot)``
            estimate_granularity: Rounding step for ``display_total``
        """
        self.settings = settings or PagingSettings()
        self.viewport = viewport
        self.extract_cursor = extract_cursor
        self.row_key_of = row_key
        self.on_snapshot = on_snapshot
        self.estimate_granularity = estimate_granularity

        self._materializer = WindowMaterializer(
            page_source, extract_cursor, on_change=self._on_window_changed
        )
        self._page_size = self.settings.min_page_size
        self._viewport_height = 0.0
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False
        self._closed = False
        self._reconciling = False
        self._reconcile_again = False

        # Last complete window, served while an edge re-anchor is loading
        self._retained: Optional[Window] = None
        self._not_found = False

        self._snapshot_handle: Optional[asyncio.TimerHandle] = None
        self._pending_snapshot: Optional[Tuple[Any, PagingSnapshot]] = None
        self._last_snapshot: Optional[PagingSnapshot] = None

        estimated_total, reached_start, reached_end, anchor, scroll = self._session_start(
            permalink_id, snapshot
        )
        self._paging = PagingStateManager(
            PagingState.initial(
                list_context,
                anchor=anchor,
                estimated_total=estimated_total,
                has_reached_start=reached_start,
                has_reached_end=reached_end,
                phase=PagingPhase.SKIPPING,
            )
        )
        self._scroll_offset = scroll
        self._window = Window(first_index=anchor.index)

    # Host signals

    def start(self):
        """Attach to the running event loop and issue the first queries."""
        self._loop = asyncio.get_running_loop()
        self._started = True
        logger.info(
            "Starting at %s (page size %d)", self._paging.anchor, self._page_size
        )
        if self._scroll_offset:
            self.viewport.scroll_to_offset(self._scroll_offset)
        self._reconcile()

    def on_resize(self, viewport_height: float):
        self._viewport_height = max(0.0, viewport_height)
        target = compute_page_size(
            self._viewport_height, self.row_height, self.settings.min_page_size
        )
        # Never shrinks
        if target > self._page_size:
            logger.info("Growing page size from %d to %d", self._page_size, target)
            self._page_size = target
        if self._started:
            self._reconcile()

    def on_scroll(self, scroll_offset: float):
        scroll_offset = max(0.0, scroll_offset)
        if scroll_offset == self._scroll_offset:
            return
        self._scroll_offset = scroll_offset
        if self._started:
            self._reconcile()

    def set_list_context(
        self,
        list_context: Any,
        permalink_id: Optional[str] = None,
        snapshot: Optional[PagingSnapshot] = None,
    ):
        """Switch to another sort/filter, discarding the current session."""
        if list_context == self._paging.state.list_context:
            return
        logger.info("List context changed to %s", list_context)
        self.flush_snapshot()
        self._reset(list_context, permalink_id, snapshot)

    def restore(self, snapshot: PagingSnapshot):
        """Put the current list back to a persisted session."""
        logger.info("Restoring session at %s", snapshot.anchor)
        self._reset(self._paging.state.list_context, None, snapshot)

    def retry(self) -> int:
        return self._materializer.retry()

    async def settle(self):
        """Wait until no query is in flight and every result is reconciled."""
        await self._materializer.settle()

    def close(self):
        self.flush_snapshot()
        self._closed = True
        self._materializer.close()

    # Read side

    @property
    def state(self) -> PagingState:
        return self._paging.state

    @property
    def window(self) -> Window:
        return self._window

    @property
    def anchor(self) -> Anchor:
        return self._paging.anchor

    @property
    def list_context(self) -> Any:
        return self._paging.state.list_context

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def row_height(self) -> float:
        return self.viewport.estimate_row_height()

    @property
    def scroll_offset(self) -> float:
        return self._scroll_offset

    @property
    def viewport_height(self) -> float:
        return self._viewport_height

    @property
    def estimated_total(self) -> int:
        return self._paging.state.estimated_total

    @property
    def total(self) -> Optional[int]:
        return self._paging.state.exact_total

    @property
    def display_total(self) -> str:
        return format_item_count(
            self.total, self.estimated_total, self.estimate_granularity
        )

    @property
    def complete(self) -> bool:
        return self._window.complete

    @property
    def empty(self) -> bool:
        return self._window.empty

    @property
    def permalink_not_found(self) -> bool:
        return self._not_found

    @property
    def row_count(self) -> int:
        window = self._window
        skeleton = 0 if window.at_end else self.settings.loading_skeleton_rows
        return max(self.estimated_total, window.end_index) + skeleton

    @property
    def rendered_range(self) -> Optional[Tuple[int, int]]:
        return rendered_range(
            self._scroll_offset,
            self._viewport_height,
            self.row_height,
            self.row_count,
            self.settings.overscan,
        )

    def row_at(self, index: int) -> Optional[Any]:
        record = self._window.at(index)
        if record is None and self._retained is not None:
            record = self._retained.at(index)
        return record

    def row_key(self, index: int) -> Any:
        record = self.row_at(index)
        if record is not None and self.row_key_of is not None:
            return self.row_key_of(record)
        return index

    def snapshot(self) -> PagingSnapshot:
        state = self._paging.state
        return PagingSnapshot(
            anchor=state.anchor,
            scroll_offset=self._scroll_offset,
            estimated_total=state.estimated_total,
            has_reached_start=state.has_reached_start,
            has_reached_end=state.has_reached_end,
        )

    def flush_snapshot(self):
        """Emit a pending snapshot now instead of when its timer fires."""
        if self._snapshot_handle is None:
            return
        self._snapshot_handle.cancel()
        self._emit_snapshot()

    # Reconcile

    def _session_start(
        self, permalink_id: Optional[str], snapshot: Optional[PagingSnapshot]
    ) -> Tuple[int, bool, bool, Anchor, float]:
        if snapshot is not None:
            return (
                snapshot.estimated_total,
                snapshot.has_reached_start,
                snapshot.has_reached_end,
                snapshot.anchor,
                snapshot.scroll_offset,
            )
        if permalink_id:
            skeleton = self.settings.loading_skeleton_rows
            anchor = permalink_anchor(permalink_id, skeleton)
            return skeleton, False, False, anchor, anchor.index * self.row_height
        return 0, True, False, TOP_ANCHOR, 0.0

    def _reset(
        self,
        list_context: Any,
        permalink_id: Optional[str],
        snapshot: Optional[PagingSnapshot],
    ):
        estimated_total, reached_start, reached_end, anchor, scroll = self._session_start(
            permalink_id, snapshot
        )
        self._retained = None
        self._not_found = False
        self._last_snapshot = None
        self._scroll_offset = scroll
        if self._started:
            self.viewport.scroll_to_offset(scroll)
        self._paging.reset_state(
            estimated_total, reached_start, reached_end, anchor, list_context
        )
        if self._started:
            self._reconcile()

    def _on_window_changed(self):
        if self._started and not self._closed:
            self._reconcile()

    def _reconcile(self):
        if self._reconciling:
            self._reconcile_again = True
            return

        self._reconciling = True
        try:
            max_passes = self.settings.max_reconcile_passes
            for _ in range(max_passes):
                self._materialize()
                changed = self._step() or self._reconcile_again
                self._reconcile_again = False
                if not changed:
                    break
            else:
                logger.warning(
                    "Window did not settle after %d passes at %s",
                    max_passes, self._paging.anchor,
                )
        finally:
            self._reconciling = False

        self._schedule_snapshot()

    def _materialize(self):
        state = self._paging.state
        self._window = self._materializer.materialize(
            state.anchor, self._page_size, state.list_context
        )
        if self._window.complete:
            self._retained = None

    def _step(self) -> bool:
        state = self._paging.state
        window = self._window

        if state.phase == PagingPhase.ADJUSTING:
            self._apply_scroll_compensation(state.pending_scroll_adjustment)
            return self._paging.scroll_adjusted()

        if window.permalink_not_found:
            return self._fall_back_from_permalink(window)

        if window.at_start and not state.has_reached_start:
            return self._paging.reached_start()
        if window.at_end and not state.has_reached_end:
            return self._paging.reached_end()
        if window.complete and window.end_index > state.estimated_total:
            return self._paging.update_estimated_total(window.end_index)

        if self._correct_anchor(state, window):
            return True
        return self._detect_edge(state, window)

    def _apply_scroll_compensation(self, rows: int):
        if rows == 0:
            return
        self._scroll_offset = max(0.0, self._scroll_offset + rows * self.row_height)
        logger.debug("Compensating scroll by %d rows to %s", rows, self._scroll_offset)
        self.viewport.scroll_to_offset(self._scroll_offset)

    def _fall_back_from_permalink(self, window: Window) -> bool:
        fallback = self.settings.permalink_fallback_to_top
        if not self._not_found:
            logger.warning(
                "Permalink %s not found, %s",
                getattr(self._paging.anchor, "record_id", None),
                "showing the top of the list" if fallback else "list is empty",
            )
            self._not_found = True
        if fallback:
            return self._paging.reset_to_top(-window.first_index)
        # Terminal: leave the empty window in place and stop skipping
        return self._paging.paging_complete()

    def _correct_anchor(self, state: PagingState, window: Window) -> bool:
        if state.phase == PagingPhase.SKIPPING and (not window.empty or window.complete):
            return self._paging.paging_complete()

        if window.empty:
            return False

        if window.first_index < 0:
            skeleton = 0 if window.at_start else self.settings.loading_skeleton_rows
            offset = -window.first_index + skeleton
            self._retained = None
            return self._paging.shift_anchor_down(
                offset, with_index(state.anchor, state.anchor.index + offset)
            )

        if window.at_start and window.first_index > 0:
            self._retained = None
            return self._paging.reset_to_top(-window.first_index)

        return False

    def _detect_edge(self, state: PagingState, window: Window) -> bool:
        if not window.complete or state.phase != PagingPhase.IDLE:
            return False

        if window.at_start and window.first_index != 0:
            return self._reanchor(TOP_ANCHOR, window)
        if window.empty:
            # The record the anchor was resumed from has gone away
            if not window.at_start:
                return self._reanchor(TOP_ANCHOR, window)
            return False

        rendered = self.rendered_range
        if rendered is None:
            return False
        first_rendered, last_rendered = rendered

        threshold = near_edge_threshold(
            self._page_size, self.settings.edge_threshold_divisor
        )
        distance = self.settings.recenter_factor * threshold

        if not window.at_start and first_rendered - window.first_index <= threshold:
            index = to_bound_index(
                last_rendered + distance, window.first_index, window.length
            )
            record = window.at(index)
            require(record is not None, "Cannot re-anchor backward onto an unloaded row")
            return self._reanchor(
                BackwardAnchor(index=index, cursor=self.extract_cursor(record)), window
            )

        if not window.at_end and window.end_index - last_rendered <= threshold:
            index = to_bound_index(
                first_rendered - distance, window.first_index, window.length
            )
            record = window.at(index)
            cursor = self.extract_cursor(record) if record is not None else None
            return self._reanchor(ForwardAnchor(index=index + 1, cursor=cursor), window)

        return False

    def _reanchor(self, anchor: Anchor, window: Window) -> bool:
        if not self._paging.update_anchor(anchor):
            return False
        logger.debug("Re-anchored to %s", anchor)
        if not window.empty:
            self._retained = window
        return True

    # Snapshots

    def _schedule_snapshot(self):
        if self.on_snapshot is None or self._loop is None or self._closed:
            return

        snapshot = self.snapshot()
        if self._pending_snapshot is not None and self._pending_snapshot[1] == snapshot:
            return
        if self._snapshot_handle is not None:
            self._snapshot_handle.cancel()
            self._snapshot_handle = None
            self._pending_snapshot = None
        if snapshot == self._last_snapshot:
            return

        self._pending_snapshot = (self._paging.state.list_context, snapshot)
        self._snapshot_handle = self._loop.call_later(
            self.settings.snapshot_debounce_ms / 1000, self._emit_snapshot
        )

    def _emit_snapshot(self):
        self._snapshot_handle = None
        if self._pending_snapshot is None:
            return
        list_context, snapshot = self._pending_snapshot
        self._pending_snapshot = None
        self._last_snapshot = snapshot
        logger.debug("Emitting snapshot at %s", snapshot.anchor)
        self.on_snapshot(list_context, snapshot)
