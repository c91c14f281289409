"""Title card layout.

Wraps a title into lines by character count and computes the per-line
``dy`` offsets (in em) that keep the whole block centered on the canvas
anchor. The offsets are relative: each one moves the baseline from the
previous line, the first one moves it from the anchor itself.
"""

from __future__ import annotations

from typing import List, Sequence

from .models import RenderedLine

DEFAULT_CHARS_PER_LINE = 30
DEFAULT_LINE_HEIGHT_EM = 1.2
DEFAULT_CANVAS_WIDTH = 1920
DEFAULT_CANVAS_HEIGHT = 1080
DEFAULT_FONT_SIZE = 90

_XML_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "'": "&apos;",
    '"': "&quot;",
}


def escape_markup(text: str) -> str:
    return "".join(_XML_ENTITIES.get(char, char) for char in text)


def wrap_words(text: str, max_chars: int) -> List[str]:
    words = text.split()
    if not words:
        return [""]
    lines: List[str] = []
    current = words[0]
    for word in words[1:]:
        if len(current) + len(word) + 1 < max_chars:
            current = f"{current} {word}"
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def vertical_offsets(count: int, line_height: float = DEFAULT_LINE_HEIGHT_EM) -> List[float]:
    if count <= 0:
        return []
    first = -((count - 1) * line_height) / 2
    return [first] + [line_height] * (count - 1)


def layout_title(
    title: str,
    max_chars: int = DEFAULT_CHARS_PER_LINE,
    line_height: float = DEFAULT_LINE_HEIGHT_EM,
) -> List[RenderedLine]:
    lines = wrap_words(escape_markup(title), max_chars)
    offsets = vertical_offsets(len(lines), line_height)
    return [RenderedLine(text=text, vertical_offset=offset) for text, offset in zip(lines, offsets)]


def _format_em(value: float) -> str:
    return f"{round(value, 4):g}em"


def build_title_svg(
    lines: Sequence[RenderedLine],
    *,
    width: int = DEFAULT_CANVAS_WIDTH,
    height: int = DEFAULT_CANVAS_HEIGHT,
    font_size: int = DEFAULT_FONT_SIZE,
) -> str:
    tspans = "".join(
        f'<tspan x="50%" dy="{_format_em(line.vertical_offset)}">{line.text}</tspan>' for line in lines
    )
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">'
        "<style>"
        ".title { font-family: 'Helvetica', 'Verdana', sans-serif; "
        f"font-size: {font_size}px; font-weight: bold; fill: #333333; "
        "text-shadow: 2px 2px 4px rgba(0,0,0,0.3); }"
        "</style>"
        '<text x="50%" y="50%" dominant-baseline="middle" text-anchor="middle" class="title">'
        f"{tspans}"
        "</text>"
        "</svg>"
    )
