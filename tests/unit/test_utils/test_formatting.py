"""Tests for formatting utilities."""


def test_round_estimate_small_values():
    from winpager.utils.formatting import round_estimate

    assert round_estimate(0) == 0
    assert round_estimate(20) == 0
    assert round_estimate(25) == 50
    assert round_estimate(100) == 100


def test_round_estimate_two_significant_figures():
    from winpager.utils.formatting import round_estimate

    assert round_estimate(161) == 150
    assert round_estimate(1234) == 1300
    assert round_estimate(98765) == 99000


def test_round_estimate_custom_granularity():
    from winpager.utils.formatting import round_estimate

    assert round_estimate(161, granularity=1) == 160
    assert round_estimate(7, granularity=10) == 10


def test_format_item_count_exact():
    from winpager.utils.formatting import format_item_count

    assert format_item_count(42, 100) == "(42)"
    assert format_item_count(0, 0) == "(0)"


def test_format_item_count_estimate():
    from winpager.utils.formatting import format_item_count

    assert format_item_count(None, 1234) == "(~1300)"
    assert format_item_count(None, 100) == "(~100)"
