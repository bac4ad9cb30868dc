"""SVG badge rendering."""

from __future__ import annotations

from xml.sax.saxutils import escape

SVG_MEDIA_TYPE = "image/svg+xml"

LABEL = "visits"
LABEL_COLOR = "#9D7CFF"
VALUE_COLOR = "#0d1117"
TEXT_COLOR = "#ffffff"
HEIGHT = 20
CHAR_WIDTH = 7
PADDING = 20


def _text_width(text: str) -> int:
    # Approximation for an 11px monospace font
    return len(text) * CHAR_WIDTH + PADDING


def render_badge_svg(count: int, *, label: str = LABEL) -> str:
    """Render the visit counter badge.

    Args:
        count: Value shown on the right-hand side.
        label: Text shown on the left-hand side.

    Returns:
        SVG document as a string.
    """
    value = str(count)
    text = escape(label)
    label_width = _text_width(label)
    value_width = _text_width(value)
    total_width = label_width + value_width

    return f"""<svg xmlns="http://www.w3.org/2000/svg" width="{total_width}" height="{HEIGHT}">
  <defs>
    <linearGradient id="labelGradient" x1="0%" y1="0%" x2="0%" y2="100%">
      <stop offset="0%" style="stop-color:{LABEL_COLOR};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{LABEL_COLOR};stop-opacity:0.9" />
    </linearGradient>
  </defs>

  <rect x="0" y="0" width="{label_width}" height="{HEIGHT}" rx="3" fill="url(#labelGradient)"/>
  <rect x="{label_width}" y="0" width="{value_width}" height="{HEIGHT}" rx="3" fill="{VALUE_COLOR}"/>

  <text x="{label_width / 2:g}" y="14" font-family="monospace" font-size="11" font-weight="bold" fill="{TEXT_COLOR}" text-anchor="middle">{text}</text>
  <text x="{label_width + value_width / 2:g}" y="14" font-family="monospace" font-size="11" font-weight="bold" fill="{TEXT_COLOR}" text-anchor="middle">{value}</text>
</svg>"""
