"""Tests for color parsing and similarity."""

from __future__ import annotations

import pytest

from svgunmask.utils.color import color_similarity, parse_color


@pytest.mark.parametrize(
    "value,expected",
    [
        ("#ff0000", (255, 0, 0)),
        ("#FFF", (255, 255, 255)),
        ("rgb(10, 20, 30)", (10, 20, 30)),
        ("green", (0, 128, 0)),
        ("Blue", (0, 0, 255)),
        ("none", None),
        ("url(#grad)", None),
        ("#12345", None),
        (None, None),
    ],
)
def test_parse_color(value, expected):
    assert parse_color(value) == expected


def test_identical_strings_are_fully_similar():
    assert color_similarity("#123456", "#123456") == 1.0
    assert color_similarity("none", "none") == 1.0


def test_none_against_color_is_dissimilar():
    assert color_similarity("none", "#000000") == 0.0
    assert color_similarity("#000000", "none") == 0.0


def test_equivalent_spellings_match():
    assert color_similarity("#fff", "white") == pytest.approx(1.0)


def test_opposite_corners_are_zero():
    assert color_similarity("#000000", "#ffffff") == pytest.approx(0.0)


def test_close_colors_are_similar():
    assert color_similarity("#ff0000", "#fe0101") > 0.99
    assert color_similarity("#ff0000", "#0000ff") < 0.8


def test_unparsable_is_zero():
    assert color_similarity("url(#grad)", "#000000") == 0.0
