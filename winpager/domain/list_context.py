"""List-context for the bundled item store: the caller-controlled sort and filter."""

from dataclasses import asdict, dataclass
from typing import Optional

SORT_FIELDS = ("created", "modified")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ItemListContext:
    sort_field: str = "modified"
    sort_direction: str = "desc"
    title_filter: Optional[str] = None

    def __post_init__(self):
        if self.sort_field not in SORT_FIELDS:
            raise ValueError(f"sort_field must be one of {SORT_FIELDS}")
        if self.sort_direction not in SORT_DIRECTIONS:
            raise ValueError(f"sort_direction must be one of {SORT_DIRECTIONS}")

    def toggled_field(self) -> "ItemListContext":
        field = "created" if self.sort_field == "modified" else "modified"
        return ItemListContext(field, self.sort_direction, self.title_filter)

    def toggled_direction(self) -> "ItemListContext":
        direction = "asc" if self.sort_direction == "desc" else "desc"
        return ItemListContext(self.sort_field, direction, self.title_filter)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ItemListContext":
        data = data or {}
        return cls(
            sort_field=data.get("sort_field", "modified"),
            sort_direction=data.get("sort_direction", "desc"),
            title_filter=data.get("title_filter") or None,
        )
