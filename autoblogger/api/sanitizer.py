from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List

from .errors import IncompleteResponse, MalformedResponse
from .models import TitleCandidateSet

FENCE_MARKERS = ("```json", "```")
PREVIEW_LENGTH = 200

_CONTROL_CHARS_RE = re.compile(r"[\u0000-\u001f\u007f-\u009f]")


def _preview(raw: str) -> str:
    return raw[:PREVIEW_LENGTH]


def strip_fences(text: str) -> str:
    cleaned = text
    for marker in FENCE_MARKERS:
        cleaned = cleaned.replace(marker, "")
    return cleaned.strip()


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS_RE.sub("", text)


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Pull the single JSON object out of raw model output.

    The object is bounded by the first ``{`` and the last ``}`` after fence
    markers are removed. Control characters are dropped before parsing since
    some models emit raw newlines and tabs inside string values.
    """
    raw = raw or ""
    cleaned = strip_fences(raw)
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first < 0 or last < first:
        raise MalformedResponse("No JSON object found in response", raw_length=len(raw), preview=_preview(raw))

    candidate = strip_control_chars(cleaned[first:last + 1])
    try:
        parsed = json.loads(candidate)
    except ValueError as exc:
        raise MalformedResponse(
            f"Response is not valid JSON: {exc.msg}",
            raw_length=len(raw),
            preview=_preview(raw),
        ) from exc
    if not isinstance(parsed, dict):
        raise MalformedResponse("Response JSON is not an object", raw_length=len(raw), preview=_preview(raw))
    return parsed


def sanitize_response(raw: str, required_keys: Iterable[str]) -> Dict[str, str]:
    parsed = parse_json_object(raw)
    keys = list(required_keys)
    missing = [key for key in keys if not isinstance(parsed.get(key), str)]
    if missing:
        raise IncompleteResponse(missing)
    return {key: parsed[key] for key in keys}


def extract_title_candidates(raw: str) -> TitleCandidateSet:
    parsed = parse_json_object(raw)
    titles = parsed.get("titles")
    if not isinstance(titles, list):
        raise IncompleteResponse(["titles"])
    cleaned: List[str] = []
    for item in titles:
        if not isinstance(item, str):
            continue
        title = " ".join(item.split())
        if title:
            cleaned.append(title)
    return TitleCandidateSet(titles=cleaned)
