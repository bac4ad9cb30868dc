"""Tests for SVG badge rendering."""

import xml.etree.ElementTree as ET

from counter_badge.utils.badge import LABEL_COLOR, VALUE_COLOR, render_badge_svg

SVG_NS = "{http://www.w3.org/2000/svg}"


def _parse(svg: str) -> ET.Element:
    return ET.fromstring(svg)


def test_renders_well_formed_svg_with_label_and_count() -> None:
    root = _parse(render_badge_svg(1234))

    texts = [t.text for t in root.iter(f"{SVG_NS}text")]
    assert texts == ["visits", "1234"]


def test_width_grows_with_digits() -> None:
    # label: 6 * 7 + 20 = 62, value: digits * 7 + 20
    assert _parse(render_badge_svg(7)).get("width") == str(62 + 27)
    assert _parse(render_badge_svg(1_000_000)).get("width") == str(62 + 69)


def test_value_rect_starts_after_label() -> None:
    root = _parse(render_badge_svg(5))

    label_rect, value_rect = list(root.iter(f"{SVG_NS}rect"))
    assert label_rect.get("width") == "62"
    assert value_rect.get("x") == "62"
    assert value_rect.get("fill") == VALUE_COLOR


def test_text_positions_are_centered() -> None:
    root = _parse(render_badge_svg(5))

    label_text, value_text = list(root.iter(f"{SVG_NS}text"))
    assert label_text.get("x") == "31"
    assert value_text.get("x") == "75.5"


def test_uses_label_gradient_color() -> None:
    assert f"stop-color:{LABEL_COLOR}" in render_badge_svg(0)


def test_custom_label_is_escaped() -> None:
    root = _parse(render_badge_svg(3, label="a<b"))

    texts = [t.text for t in root.iter(f"{SVG_NS}text")]
    assert texts == ["a<b", "3"]
