from __future__ import annotations

from typing import Sequence


class AutoBloggerError(RuntimeError):
    pass


class ConfigError(AutoBloggerError):
    pass


class MalformedResponse(AutoBloggerError):
    def __init__(self, message: str, *, raw_length: int, preview: str) -> None:
        super().__init__(f"{message} (length={raw_length}, preview={preview!r})")
        self.raw_length = raw_length
        self.preview = preview


class IncompleteResponse(AutoBloggerError):
    def __init__(self, missing: Sequence[str]) -> None:
        super().__init__(f"Response missing required field(s): {', '.join(missing)}.")
        self.missing = list(missing)


class EmptyCandidateSet(AutoBloggerError):
    pass


class SynthesisFailure(AutoBloggerError):
    pass


class PublicationFailure(AutoBloggerError):
    pass


class PersistenceFailure(AutoBloggerError):
    pass
