"""The materialized window of records."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Window:
    """Loaded records addressed by global index.

    ``at_start``/``at_end`` describe this window only; the sticky,
    session-level flags live on the paging state.
    """

    first_index: int
    length: int = 0
    complete: bool = False
    empty: bool = True
    at_start: bool = False
    at_end: bool = False
    permalink_not_found: bool = False
    records: Dict[int, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def end_index(self) -> int:
        return self.first_index + self.length

    def at(self, index: int) -> Optional[Any]:
        return self.records.get(index)

    def covers(self, index: int) -> bool:
        return self.first_index <= index < self.end_index
