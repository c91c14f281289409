from __future__ import annotations

import re
from typing import Dict

from bs4 import BeautifulSoup


def word_count_from_html(html: str) -> int:
    soup = BeautifulSoup(html or "", "lxml")
    text = soup.get_text(" ")
    words = re.findall(r"\b\w+\b", text)
    return len(words)


def count_headings(html: str) -> int:
    soup = BeautifulSoup(html or "", "lxml")
    return len(soup.find_all(["h2", "h3"]))


def count_paragraphs(html: str) -> int:
    soup = BeautifulSoup(html or "", "lxml")
    return len(soup.find_all("p"))


def draft_stats(html: str) -> Dict[str, int]:
    return {
        "words": word_count_from_html(html),
        "headings": count_headings(html),
        "paragraphs": count_paragraphs(html),
    }
