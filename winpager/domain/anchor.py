"""Anchors: where the materialized window sits in the unbounded sequence."""

from dataclasses import dataclass, replace
from typing import Any, ClassVar, Optional, Union

from .errors import require

Cursor = Any


@dataclass(frozen=True)
class ForwardAnchor:
    """Window starts at ``index`` and reads forward after ``cursor``.

    A missing cursor means the window starts at the beginning of the sequence.
    """

    kind: ClassVar[str] = "forward"

    index: int
    cursor: Optional[Cursor] = None


@dataclass(frozen=True)
class BackwardAnchor:
    """Window ends just before ``index`` and reads backward from ``cursor``."""

    kind: ClassVar[str] = "backward"

    index: int
    cursor: Cursor

    def __post_init__(self):
        require(self.cursor is not None, "Backward anchor requires a cursor")


@dataclass(frozen=True)
class PermalinkAnchor:
    """Window is centered so that ``record_id`` occupies slot ``index``."""

    kind: ClassVar[str] = "permalink"

    index: int
    record_id: str

    def __post_init__(self):
        require(bool(self.record_id), "Permalink anchor requires a record id")


Anchor = Union[ForwardAnchor, BackwardAnchor, PermalinkAnchor]

TOP_ANCHOR = ForwardAnchor(index=0)


def permalink_anchor(record_id: str, skeleton_rows: int = 1) -> PermalinkAnchor:
    # Leaves room for a loading placeholder above the target row.
    return PermalinkAnchor(index=skeleton_rows, record_id=record_id)


def with_index(anchor: Anchor, index: int) -> Anchor:
    return replace(anchor, index=index)


def anchor_to_dict(anchor: Anchor) -> dict:
    if isinstance(anchor, ForwardAnchor):
        return {"kind": anchor.kind, "index": anchor.index, "cursor": anchor.cursor}
    if isinstance(anchor, BackwardAnchor):
        return {"kind": anchor.kind, "index": anchor.index, "cursor": anchor.cursor}
    if isinstance(anchor, PermalinkAnchor):
        return {"kind": anchor.kind, "index": anchor.index, "id": anchor.record_id}
    raise TypeError(f"Unknown anchor type: {type(anchor).__name__}")


def anchor_from_dict(data: dict) -> Anchor:
    kind = data.get("kind")
    index = int(data["index"])
    if kind == ForwardAnchor.kind:
        return ForwardAnchor(index=index, cursor=data.get("cursor"))
    if kind == BackwardAnchor.kind:
        return BackwardAnchor(index=index, cursor=data.get("cursor"))
    if kind == PermalinkAnchor.kind:
        return PermalinkAnchor(index=index, record_id=data["id"])
    raise ValueError(f"Unknown anchor kind: {kind!r}")
