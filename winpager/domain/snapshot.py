"""Persistable session snapshot."""

from dataclasses import dataclass

from .anchor import Anchor, anchor_from_dict, anchor_to_dict


@dataclass(frozen=True)
class PagingSnapshot:
    """Everything needed to put a list back where the user left it."""

    anchor: Anchor
    scroll_offset: float
    estimated_total: int
    has_reached_start: bool
    has_reached_end: bool

    def to_dict(self) -> dict:
        return {
            "anchor": anchor_to_dict(self.anchor),
            "scroll_offset": self.scroll_offset,
            "estimated_total": self.estimated_total,
            "has_reached_start": self.has_reached_start,
            "has_reached_end": self.has_reached_end,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PagingSnapshot":
        return cls(
            anchor=anchor_from_dict(data["anchor"]),
            scroll_offset=float(data.get("scroll_offset", 0)),
            estimated_total=int(data.get("estimated_total", 0)),
            has_reached_start=bool(data.get("has_reached_start", False)),
            has_reached_end=bool(data.get("has_reached_end", False)),
        )
