"""Protocol definitions for the host-supplied collaborators."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Hashable, List, Optional, Protocol

from winpager.domain.snapshot import PagingSnapshot

FORWARD = "forward"
BACKWARD = "backward"


@dataclass(frozen=True)
class PageResult:
    """Up to ``limit`` ordered records, nearest to the cursor first.

    ``complete`` is False when the transport has only delivered part of the
    answer; the materializer keeps such a query pending.
    """

    rows: List[Any] = field(default_factory=list)
    complete: bool = True


class PageSource(Protocol):
    def fetch_page(
        self,
        limit: int,
        cursor: Optional[Any],
        direction: str,
        list_context: Any,
    ) -> Awaitable[PageResult]: ...

    def fetch_by_id(self, record_id: str, list_context: Any) -> Awaitable[Optional[Any]]: ...


class ViewportPort(Protocol):
    def estimate_row_height(self) -> float: ...

    def scroll_to_offset(self, offset: float) -> None: ...


class SnapshotStorePort(Protocol):
    def save(self, list_context: Any, snapshot: PagingSnapshot) -> None: ...

    def load(self, list_context: Any) -> Optional[PagingSnapshot]: ...


CursorExtractor = Callable[[Any], Any]
RowKeyExtractor = Callable[[Any], Hashable]
SnapshotCallback = Callable[[Any, PagingSnapshot], None]
