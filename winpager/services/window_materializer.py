"""Window Materializer - Turns an anchor into page queries and a Window."""

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from winpager.core.protocols import (
    BACKWARD,
    FORWARD,
    CursorExtractor,
    PageResult,
    PageSource,
)
from winpager.domain.anchor import Anchor, BackwardAnchor, ForwardAnchor, PermalinkAnchor
from winpager.domain.errors import require
from winpager.domain.window import Window

logger = logging.getLogger("WINPAGER.WindowMaterializer")

PAGE = "page"
RECORD = "record"
BEFORE = "before"
AFTER = "after"


@dataclass(frozen=True)
class QueryKey:
    """Identity of the queries an anchor needs.

    The anchor's index is deliberately not part of it: moving the anchor to a
    new index re-places rows that were already fetched.
    """

    kind: str
    cursor: Any
    record_id: Optional[str]
    page_size: int
    list_context: Any


def query_key(anchor: Anchor, page_size: int, list_context: Any) -> QueryKey:
    if isinstance(anchor, (ForwardAnchor, BackwardAnchor)):
        return QueryKey(anchor.kind, anchor.cursor, None, page_size, list_context)
    if isinstance(anchor, PermalinkAnchor):
        return QueryKey(anchor.kind, None, anchor.record_id, page_size, list_context)
    raise TypeError(f"Unknown anchor type: {type(anchor).__name__}")


def build_forward_window(
    anchor: ForwardAnchor, page_size: int, rows: List[Any], complete: bool
) -> Window:
    # One extra row is requested as look-ahead for the end boundary
    has_more = len(rows) > page_size
    length = page_size if has_more else len(rows)
    return Window(
        first_index=anchor.index,
        length=length,
        complete=complete,
        empty=len(rows) == 0,
        at_start=anchor.cursor is None or anchor.index == 0,
        at_end=complete and not has_more,
        records={anchor.index + i: rows[i] for i in range(length)},
    )


def build_backward_window(
    anchor: BackwardAnchor, page_size: int, rows: List[Any], complete: bool
) -> Window:
    # Rows arrive nearest-first, so local row i sits at anchor.index - i - 1
    has_more = len(rows) > page_size
    length = page_size if has_more else len(rows)
    return Window(
        first_index=anchor.index - length,
        length=length,
        complete=complete,
        empty=len(rows) == 0,
        at_start=complete and not has_more,
        at_end=False,
        records={anchor.index - i - 1: rows[i] for i in range(length)},
    )


def permalink_not_found_window(anchor: PermalinkAnchor) -> Window:
    return Window(
        first_index=anchor.index,
        length=0,
        complete=True,
        empty=True,
        at_start=True,
        at_end=True,
        permalink_not_found=True,
    )


def build_permalink_window(
    anchor: PermalinkAnchor,
    page_size: int,
    record: Optional[Any],
    record_complete: bool,
    before: Optional[List[Any]] = None,
    before_complete: bool = False,
    after: Optional[List[Any]] = None,
    after_complete: bool = False,
) -> Window:
    """Place the target at ``anchor.index`` with its neighbours on either side.

    The before page is requested with ``half + 1`` rows and the after page with
    ``half``; at most ``half`` and ``half - 1`` of them are placed, the rest
    being look-ahead for boundary detection.
    """
    require(page_size % 2 == 0, "Permalink page size must be even")
    if record_complete and record is None:
        return permalink_not_found_window(anchor)

    half = page_size // 2
    before = before or []
    after = after or []
    before_size = min(len(before), half)
    after_size = min(len(after), half - 1)

    records: Dict[int, Any] = {}
    if record is not None:
        records[anchor.index] = record
    for i in range(before_size):
        records[anchor.index - i - 1] = before[i]
    for i in range(after_size):
        records[anchor.index + i + 1] = after[i]

    length = before_size + after_size + (1 if record is not None else 0)
    return Window(
        first_index=anchor.index - before_size,
        length=length,
        complete=record_complete and before_complete and after_complete,
        empty=length == 0,
        at_start=before_complete and len(before) <= half,
        at_end=after_complete and len(after) <= half - 1,
        records=records,
    )


class _QuerySlot:
    """One outstanding query and whatever it has delivered so far."""

    def __init__(self, limit: int = 0, cursor: Any = None, direction: str = FORWARD):
        self.limit = limit
        self.cursor = cursor
        self.direction = direction
        self.rows: List[Any] = []
        self.record: Optional[Any] = None
        self.complete = False
        self.in_flight = False


class WindowMaterializer:
    """Issues the page queries an anchor needs and reconciles their results.

    Results of queries issued for an earlier anchor, page size or list-context
    are disregarded when they arrive.
    """

    def __init__(
        self,
        page_source: PageSource,
        extract_cursor: CursorExtractor,
        on_change: Optional[Callable[[], None]] = None,
    ):
        """Initialize WindowMaterializer.

        Args:
            page_source: Host transport executing page and id queries
            extract_cursor: Projects a loaded record to a resumable cursor
            on_change: Called after any query result changes the window
        """
        self.page_source = page_source
        self.extract_cursor = extract_cursor
        self.on_change = on_change

        self._key: Optional[QueryKey] = None
        self._anchor: Optional[Anchor] = None
        self._generation = 0
        self._slots: Dict[str, _QuerySlot] = {}
        self._tasks: Set[asyncio.Future] = set()
        self._window = Window(first_index=0)

    @property
    def window(self) -> Window:
        return self._window

    @property
    def key(self) -> Optional[QueryKey]:
        return self._key

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def materialize(self, anchor: Anchor, page_size: int, list_context: Any) -> Window:
        """Return the window for ``anchor``, issuing its queries if they are new."""
        if isinstance(anchor, PermalinkAnchor):
            require(page_size % 2 == 0, "Permalink page size must be even")
        key = query_key(anchor, page_size, list_context)
        if key != self._key:
            self._start(key)
        self._anchor = anchor
        self._window = self._build()
        return self._window

    def retry(self) -> int:
        """Re-issue queries of the current anchor that have not completed."""
        retried = 0
        for name, slot in self._slots.items():
            if not slot.complete and not slot.in_flight:
                self._issue(name)
                retried += 1
        if retried:
            logger.info("Retrying %d pending queries", retried)
        return retried

    async def settle(self):
        """Wait until every issued query has delivered and been applied."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)

    def close(self):
        self._generation += 1
        self._key = None
        self._slots = {}
        self.on_change = None

    def _start(self, key: QueryKey):
        self._generation += 1
        self._key = key
        logger.debug(
            "Starting %s queries (generation %d, page size %d)",
            key.kind, self._generation, key.page_size,
        )
        if key.kind in (FORWARD, BACKWARD):
            self._slots = {
                PAGE: _QuerySlot(limit=key.page_size + 1, cursor=key.cursor, direction=key.kind)
            }
            self._issue(PAGE)
        else:
            self._slots = {RECORD: _QuerySlot()}
            self._issue(RECORD)

    def _issue(self, name: str):
        key = self._key
        slot = self._slots[name]
        if name == RECORD:
            awaitable = self.page_source.fetch_by_id(key.record_id, key.list_context)
        else:
            awaitable = self.page_source.fetch_page(
                slot.limit, slot.cursor, slot.direction, key.list_context
            )
        slot.in_flight = True
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(
            functools.partial(self._on_fetch_done, self._generation, name)
        )

    def _on_fetch_done(self, generation: int, name: str, task: asyncio.Future):
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if generation != self._generation:
            logger.debug("Ignoring stale %s result from generation %d", name, generation)
            return

        slot = self._slots[name]
        slot.in_flight = False
        if error is not None:
            # Stays pending; the host decides when to retry
            logger.error("%s query failed: %s", name.capitalize(), error)
            return

        result = task.result()
        if name == RECORD:
            self._apply_record(slot, result)
        else:
            self._apply_page(slot, result)

        self._window = self._build()
        if self.on_change:
            self.on_change()

    def _apply_page(self, slot: _QuerySlot, result: PageResult):
        slot.rows = list(result.rows)
        slot.complete = result.complete
        logger.debug(
            "Received %d %s rows (complete=%s)", len(slot.rows), slot.direction, slot.complete
        )

    def _apply_record(self, slot: _QuerySlot, record: Optional[Any]):
        slot.record = record
        slot.complete = True
        if record is None:
            logger.info("Permalink target %s not found", self._key.record_id)
            return

        half = self._key.page_size // 2
        cursor = self.extract_cursor(record)
        self._slots[BEFORE] = _QuerySlot(limit=half + 1, cursor=cursor, direction=BACKWARD)
        self._slots[AFTER] = _QuerySlot(limit=half, cursor=cursor, direction=FORWARD)
        self._issue(BEFORE)
        self._issue(AFTER)

    def _build(self) -> Window:
        anchor = self._anchor
        page_size = self._key.page_size
        if isinstance(anchor, ForwardAnchor):
            slot = self._slots[PAGE]
            return build_forward_window(anchor, page_size, slot.rows, slot.complete)
        if isinstance(anchor, BackwardAnchor):
            slot = self._slots[PAGE]
            return build_backward_window(anchor, page_size, slot.rows, slot.complete)
        if isinstance(anchor, PermalinkAnchor):
            record_slot = self._slots[RECORD]
            before = self._slots.get(BEFORE)
            after = self._slots.get(AFTER)
            return build_permalink_window(
                anchor,
                page_size,
                record_slot.record,
                record_slot.complete,
                before.rows if before else None,
                before.complete if before else False,
                after.rows if after else None,
                after.complete if after else False,
            )
        raise TypeError(f"Unknown anchor type: {type(anchor).__name__}")
