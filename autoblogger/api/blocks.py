from __future__ import annotations

import re
from typing import List

BLOCK_SEPARATOR = "\n\n"

_SPLIT_RE = re.compile(r"(?=<(?:h[23]|p)[\s>])", flags=re.IGNORECASE)
_BLOCK_START_RE = re.compile(r"^<(?:h[1-6]|p)[\s>]", flags=re.IGNORECASE)
_HEADING_START_RE = re.compile(r"^<h[1-6][\s>]", flags=re.IGNORECASE)


def segment_blocks(html: str) -> List[str]:
    """Split flat article HTML into heading and paragraph blocks.

    Best effort only: tag balance is not checked. Text outside any heading or
    paragraph tag is wrapped in its own paragraph.
    """
    blocks: List[str] = []
    for chunk in _SPLIT_RE.split(html or ""):
        cleaned = chunk.strip()
        if not cleaned:
            continue
        if _BLOCK_START_RE.match(cleaned):
            blocks.append(cleaned)
        else:
            blocks.append(f"<p>{cleaned}</p>")
    return blocks


def to_block_markup(html: str) -> str:
    return BLOCK_SEPARATOR.join(segment_blocks(html))


def block_kind(fragment: str) -> str:
    if _HEADING_START_RE.match(fragment.strip()):
        return "heading"
    return "paragraph"
