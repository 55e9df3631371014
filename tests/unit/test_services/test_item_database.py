"""Tests for the SQLite item store."""

import itertools

import pytest


@pytest.fixture
def clock(monkeypatch):
    ticks = itertools.count(5000)
    monkeypatch.setattr("winpager.services.item_database.now_ms", lambda: next(ticks))


@pytest.fixture
def db(clock):
    from winpager.services.item_database import ItemDB

    database = ItemDB(":memory:")
    yield database
    database.close()


def _ids(items):
    return [item["id"] for item in items]


def test_add_and_get_item(db):
    item = db.add_item("First", "Body", item_id="i0", created=1000)

    assert item == {
        "id": "i0",
        "title": "First",
        "description": "Body",
        "created": 1000,
        "modified": 5000,
    }
    assert db.get_item("i0") == item
    assert db.get_item("missing") is None


def test_generated_ids_use_url_safe_alphabet(db):
    from winpager.services.item_database import ID_ALPHABET

    item = db.add_item("Untitled")

    assert len(item["id"]) == 10
    assert set(item["id"]) <= set(ID_ALPHABET)
    assert item["created"] == item["modified"]


def test_get_page_keyset_forward_and_backward(db):
    from winpager.services.item_database import item_cursor

    for i in range(5):
        db.add_item(f"Item {i}", item_id=f"i{i}", created=1000 + i)

    first = db.get_page(2)
    assert _ids(first) == ["i4", "i3"]

    second = db.get_page(2, item_cursor(first[-1]))
    assert _ids(second) == ["i2", "i1"]

    backward = db.get_page(10, item_cursor(second[-1]), "backward")
    assert _ids(backward) == ["i2", "i3", "i4"]

    assert db.get_page(10, item_cursor(db.get_item("i4")), "backward") == []


def test_get_page_breaks_ties_by_id(db):
    from winpager.domain.list_context import ItemListContext
    from winpager.services.item_database import item_cursor

    for item_id in ("c", "a", "b"):
        db.add_item(item_id.upper(), item_id=item_id, created=1000)
    context = ItemListContext("created", "asc")

    assert _ids(db.get_page(10, context=context)) == ["a", "b", "c"]

    middle = item_cursor(db.get_item("b"))
    assert _ids(db.get_page(10, middle, "forward", context)) == ["c"]
    assert _ids(db.get_page(10, middle, "backward", context)) == ["a"]


def test_full_traversal_visits_every_item_once(db):
    from winpager.services.item_database import item_cursor

    db.seed(50, seed=7)
    expected = _ids(db.get_page(100))

    seen = []
    cursor = None
    while True:
        page = db.get_page(7, cursor)
        if not page:
            break
        seen.extend(_ids(page))
        cursor = item_cursor(page[-1])

    assert seen == expected
    assert len(set(seen)) == 50


def test_title_filter(db):
    from winpager.domain.list_context import ItemListContext

    db.add_item("apple pie", item_id="a")
    db.add_item("banana", item_id="b")
    db.add_item("Apple tart", item_id="c")
    context = ItemListContext(title_filter="apple")

    assert _ids(db.get_page(10, context=context)) == ["c", "a"]
    assert db.get_total_count(context) == 2
    assert db.get_total_count() == 3


def test_title_filter_treats_wildcards_literally(db):
    from winpager.domain.list_context import ItemListContext

    db.add_item("lorem ipsum", item_id="plain")
    db.add_item("snake_case 100%", item_id="marked")

    for title_filter in ("_", "%", "E_C"):
        context = ItemListContext(title_filter=title_filter)

        assert _ids(db.get_page(10, context=context)) == ["marked"]
        assert db.get_total_count(context) == 1
        assert db.get_item("marked", context)["id"] == "marked"
        assert db.get_item("plain", context) is None


def test_get_item_agrees_with_get_page_under_filter(db):
    from winpager.domain.list_context import ItemListContext

    db.add_item("apple pie", item_id="a")
    db.add_item("banana", item_id="b")
    context = ItemListContext(title_filter="APPLE")

    listed = _ids(db.get_page(10, context=context))

    assert listed == ["a"]
    assert [db.get_item(item_id, context) is not None for item_id in ("a", "b")] == [True, False]


def test_edit_item_bumps_modified(db):
    for i in range(3):
        db.add_item(f"Item {i}", item_id=f"i{i}")

    edited = db.edit_item("i0", title="Renamed")

    assert edited["title"] == "Renamed"
    assert edited["modified"] == 5003
    assert _ids(db.get_page(10)) == ["i0", "i2", "i1"]
    assert db.edit_item("missing", title="x") is None


def test_delete_item(db):
    db.add_item("Doomed", item_id="d")

    assert db.delete_item("d") is True
    assert db.delete_item("d") is False
    assert db.get_total_count() == 0


def test_seed_is_reproducible(db):
    from winpager.services.item_database import ItemDB

    assert db.seed(20, seed=3) == 20

    other = ItemDB(":memory:")
    other.seed(20, seed=3)
    assert sorted(_ids(other.get_page(100))) == sorted(_ids(db.get_page(100)))
    other.close()

