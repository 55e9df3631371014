"""Tests for the window materializer."""

import asyncio

import pytest


def test_forward_window_with_look_ahead_row():
    from winpager.domain.anchor import TOP_ANCHOR
    from winpager.services.window_materializer import build_forward_window

    window = build_forward_window(TOP_ANCHOR, 4, ["a", "b", "c", "d", "e"], complete=True)

    assert window.first_index == 0
    assert window.length == 4
    assert window.at(3) == "d"
    assert window.at(4) is None
    assert window.at_start is True
    assert window.at_end is False


def test_forward_window_reaching_end():
    from winpager.domain.anchor import ForwardAnchor
    from winpager.services.window_materializer import build_forward_window

    window = build_forward_window(ForwardAnchor(20, "c"), 4, ["a", "b"], complete=True)

    assert window.first_index == 20
    assert window.at(21) == "b"
    assert window.at_start is False
    assert window.at_end is True


def test_forward_window_incomplete_is_not_at_end():
    from winpager.domain.anchor import ForwardAnchor
    from winpager.services.window_materializer import build_forward_window

    window = build_forward_window(ForwardAnchor(20, "c"), 4, ["a"], complete=False)

    assert window.at_end is False
    assert window.complete is False


def test_backward_window_places_rows_before_anchor():
    from winpager.domain.anchor import BackwardAnchor
    from winpager.services.window_materializer import build_backward_window

    window = build_backward_window(BackwardAnchor(10, "k"), 4, ["j", "i", "h"], complete=True)

    assert window.first_index == 7
    assert window.at(9) == "j"
    assert window.at(7) == "h"
    assert window.at(10) is None
    assert window.at_start is True
    assert window.at_end is False


def test_permalink_window_split():
    from winpager.domain.anchor import PermalinkAnchor
    from winpager.services.window_materializer import build_permalink_window

    before = ["b1", "b2", "b3", "b4", "b5", "b6"]
    after = ["a1", "a2", "a3", "a4", "a5"]
    window = build_permalink_window(
        PermalinkAnchor(1, "t"), 10, "target", True, before, True, after, True
    )

    assert window.first_index == -4
    assert window.length == 10
    assert window.at(1) == "target"
    assert window.at(-4) == "b5"
    assert window.at(5) == "a4"
    assert window.at(6) is None
    assert window.at_start is False
    assert window.at_end is False
    assert window.complete is True


def test_permalink_window_near_both_boundaries():
    from winpager.domain.anchor import PermalinkAnchor
    from winpager.services.window_materializer import build_permalink_window

    window = build_permalink_window(
        PermalinkAnchor(1, "t"), 10, "target", True, ["b1", "b2"], True, ["a1"], True
    )

    assert window.first_index == -1
    assert window.length == 4
    assert window.at_start is True
    assert window.at_end is True


def test_permalink_window_not_found():
    from winpager.domain.anchor import PermalinkAnchor
    from winpager.services.window_materializer import build_permalink_window

    window = build_permalink_window(PermalinkAnchor(1, "gone"), 10, None, True)

    assert window.permalink_not_found is True
    assert window.complete is True
    assert window.empty is True
    assert window.at_start is True
    assert window.at_end is True
    assert window.first_index == 1


def test_permalink_window_requires_even_page_size():
    from winpager.domain.anchor import PermalinkAnchor
    from winpager.domain.errors import PagingInvariantError
    from winpager.services.window_materializer import WindowMaterializer

    materializer = WindowMaterializer(None, lambda record: record)

    with pytest.raises(PagingInvariantError):
        materializer.materialize(PermalinkAnchor(1, "r1"), 99, "default")


def test_materializer_loads_forward_page():
    from fakes import FakePageSource, make_records, record_cursor
    from winpager.domain.anchor import TOP_ANCHOR
    from winpager.services.window_materializer import WindowMaterializer

    async def scenario():
        source = FakePageSource(make_records(300))
        materializer = WindowMaterializer(source, record_cursor)
        pending = materializer.materialize(TOP_ANCHOR, 100, "default")
        await materializer.settle()
        return source, pending, materializer.window

    source, pending, window = asyncio.run(scenario())

    assert pending.complete is False
    assert source.calls == [("page", 101, None, "forward", "default")]
    assert window.complete is True
    assert window.length == 100
    assert window.at(99)["id"] == "r99"


def test_index_change_reuses_fetched_rows():
    from fakes import FakePageSource, make_records, record_cursor
    from winpager.domain.anchor import BackwardAnchor, with_index
    from winpager.services.window_materializer import WindowMaterializer

    async def scenario():
        source = FakePageSource(make_records(300))
        materializer = WindowMaterializer(source, record_cursor)
        anchor = BackwardAnchor(10, {"n": 50})
        materializer.materialize(anchor, 100, "default")
        await materializer.settle()
        window = materializer.materialize(with_index(anchor, 50), 100, "default")
        return source, window

    source, window = asyncio.run(scenario())

    assert len(source.calls) == 1
    assert window.first_index == 0
    assert window.at(0)["id"] == "r0"
    assert window.at(49)["id"] == "r49"


def test_superseded_results_are_ignored():
    from fakes import FakePageSource, make_records, record_cursor
    from winpager.domain.anchor import TOP_ANCHOR
    from winpager.services.window_materializer import WindowMaterializer

    async def scenario():
        changes = []
        source = FakePageSource(make_records(1000))
        source.gate = asyncio.Event()
        materializer = WindowMaterializer(
            source, record_cursor, on_change=lambda: changes.append(materializer.window)
        )
        materializer.materialize(TOP_ANCHOR, 100, "default")
        materializer.materialize(TOP_ANCHOR, 100, "reversed")
        source.gate.set()
        await materializer.settle()
        return changes, materializer.window

    changes, window = asyncio.run(scenario())

    assert len(changes) == 1
    assert window.at(0)["id"] == "r999"


def test_permalink_issues_lookup_then_both_halves():
    from fakes import FakePageSource, make_records, record_cursor
    from winpager.domain.anchor import PermalinkAnchor
    from winpager.services.window_materializer import WindowMaterializer

    async def scenario():
        source = FakePageSource(make_records(1000))
        materializer = WindowMaterializer(source, record_cursor)
        materializer.materialize(PermalinkAnchor(1, "r500"), 10, "default")
        await materializer.settle()
        return source, materializer.window

    source, window = asyncio.run(scenario())

    assert source.calls[0] == ("id", "r500", "default")
    assert sorted(source.calls[1:]) == sorted(
        [
            ("page", 6, {"n": 500}, "backward", "default"),
            ("page", 5, {"n": 500}, "forward", "default"),
        ]
    )
    assert window.at(1)["id"] == "r500"
    assert window.at(0)["id"] == "r499"
    assert window.at(2)["id"] == "r501"
    assert window.complete is True


def test_unknown_permalink_issues_no_page_queries():
    from fakes import FakePageSource, make_records, record_cursor
    from winpager.domain.anchor import PermalinkAnchor
    from winpager.services.window_materializer import WindowMaterializer

    async def scenario():
        source = FakePageSource(make_records(50))
        materializer = WindowMaterializer(source, record_cursor)
        materializer.materialize(PermalinkAnchor(1, "missing"), 10, "default")
        await materializer.settle()
        return source, materializer.window

    source, window = asyncio.run(scenario())

    assert source.calls == [("id", "missing", "default")]
    assert window.permalink_not_found is True


def test_failed_query_stays_pending_until_retry():
    from fakes import FakePageSource, make_records, record_cursor
    from winpager.domain.anchor import TOP_ANCHOR
    from winpager.services.window_materializer import WindowMaterializer

    async def scenario():
        source = FakePageSource(make_records(20))
        source.errors_remaining = 1
        materializer = WindowMaterializer(source, record_cursor)
        materializer.materialize(TOP_ANCHOR, 100, "default")
        await materializer.settle()
        failed = materializer.window
        retried = materializer.retry()
        await materializer.settle()
        return failed, retried, materializer.retry(), materializer.window

    failed, retried, nothing_left, window = asyncio.run(scenario())

    assert failed.complete is False
    assert retried == 1
    assert nothing_left == 0
    assert window.complete is True
    assert window.length == 20
