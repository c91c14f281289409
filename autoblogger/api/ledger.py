from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Union

from .errors import PersistenceFailure

logger = logging.getLogger("autoblogger.ledger")


def normalize_title(title: str) -> str:
    return " ".join((title or "").split()).casefold()


def contains(title: str, history: Iterable[str]) -> bool:
    key = normalize_title(title)
    return any(normalize_title(item) == key for item in history)


class TitleLedger:
    """Append-only file of published titles, one per line."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load_history(self) -> List[str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("autoblogger.ledger.empty path=%s", self.path)
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceFailure(f"Could not read title history at {self.path}: {exc}") from exc
        history = [line.strip() for line in text.splitlines() if line.strip()]
        logger.info("autoblogger.ledger.loaded path=%s entries=%s", self.path, len(history))
        return history

    def _needs_separator(self) -> bool:
        # Hand-edited files may lack the final newline.
        try:
            with self.path.open("rb") as handle:
                handle.seek(0, 2)
                if handle.tell() == 0:
                    return False
                handle.seek(-1, 2)
                return handle.read(1) != b"\n"
        except FileNotFoundError:
            return False

    def append(self, title: str) -> bool:
        entry = " ".join((title or "").split())
        if not entry:
            logger.warning("autoblogger.ledger.skip_blank path=%s", self.path)
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self._needs_separator():
                entry = "\n" + entry
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(entry + "\n")
        except OSError as exc:
            logger.error("autoblogger.ledger.persistence_failure path=%s error=%s", self.path, exc)
            return False
        logger.info("autoblogger.ledger.appended path=%s", self.path)
        return True
