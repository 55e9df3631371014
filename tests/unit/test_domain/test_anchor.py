"""Tests for anchors, snapshots and the item list-context."""

import pytest


def test_backward_anchor_requires_cursor():
    from winpager.domain.anchor import BackwardAnchor
    from winpager.domain.errors import PagingInvariantError

    with pytest.raises(PagingInvariantError):
        BackwardAnchor(index=10, cursor=None)


def test_invariant_error_is_an_assertion_error():
    from winpager.domain.errors import PagingInvariantError, require

    with pytest.raises(AssertionError):
        require(False, "broken")

    assert issubclass(PagingInvariantError, AssertionError)


def test_permalink_anchor_leaves_room_for_skeleton():
    from winpager.domain.anchor import PermalinkAnchor, permalink_anchor

    assert permalink_anchor("abc") == PermalinkAnchor(index=1, record_id="abc")
    assert permalink_anchor("abc", skeleton_rows=3).index == 3


def test_with_index_keeps_kind_and_cursor():
    from winpager.domain.anchor import BackwardAnchor, with_index

    moved = with_index(BackwardAnchor(10, {"n": 50}), 50)

    assert moved == BackwardAnchor(50, {"n": 50})


def test_anchor_dict_conversion():
    from winpager.domain.anchor import (
        TOP_ANCHOR,
        BackwardAnchor,
        PermalinkAnchor,
        anchor_from_dict,
        anchor_to_dict,
    )

    assert anchor_to_dict(TOP_ANCHOR) == {"kind": "forward", "index": 0, "cursor": None}
    assert anchor_to_dict(PermalinkAnchor(1, "abc")) == {
        "kind": "permalink",
        "index": 1,
        "id": "abc",
    }
    data = anchor_to_dict(BackwardAnchor(7, {"id": "x", "modified": 3}))
    assert anchor_from_dict(data) == BackwardAnchor(7, {"id": "x", "modified": 3})


def test_anchor_from_dict_rejects_unknown_kind():
    from winpager.domain.anchor import anchor_from_dict

    with pytest.raises(ValueError):
        anchor_from_dict({"kind": "sideways", "index": 0})


def test_snapshot_from_dict_restores_anchor():
    from winpager.domain.anchor import ForwardAnchor
    from winpager.domain.snapshot import PagingSnapshot

    snapshot = PagingSnapshot(
        anchor=ForwardAnchor(61, {"n": 60}),
        scroll_offset=4080.0,
        estimated_total=161,
        has_reached_start=True,
        has_reached_end=False,
    )

    assert PagingSnapshot.from_dict(snapshot.to_dict()) == snapshot


def test_window_lookup():
    from winpager.domain.window import Window

    window = Window(first_index=5, length=2, empty=False, records={5: "a", 6: "b"})

    assert window.end_index == 7
    assert window.at(6) == "b"
    assert window.at(7) is None
    assert window.covers(5)
    assert not window.covers(7)


def test_item_list_context_validation():
    from winpager.domain.list_context import ItemListContext

    with pytest.raises(ValueError):
        ItemListContext(sort_field="title")
    with pytest.raises(ValueError):
        ItemListContext(sort_direction="up")


def test_item_list_context_toggles():
    from winpager.domain.list_context import ItemListContext

    context = ItemListContext()

    assert context.toggled_field() == ItemListContext("created", "desc")
    assert context.toggled_direction() == ItemListContext("modified", "asc")
    assert ItemListContext.from_dict(context.to_dict()) == context
    assert ItemListContext.from_dict(None) == context
