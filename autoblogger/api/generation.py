from __future__ import annotations

import logging
from typing import Optional, Sequence

from .config import PipelineConfig
from .llm import call_llm_text

logger = logging.getLogger("autoblogger.generation")

TITLE_COUNT = 5
MAX_EXCLUDED_IN_PROMPT = 200

AUTHOR_PERSONA = (
    "You are a Lead Full Stack Developer and blockchain expert who writes in-depth technical "
    "tutorials and insights for other developers. Your tone is professional yet approachable, "
    "as if written by a seasoned developer."
)

TITLES_SYSTEM_PROMPT = (
    AUTHOR_PERSONA + " You propose blog post titles. Return a single JSON object only, no prose."
)

DRAFT_SYSTEM_PROMPT = (
    AUTHOR_PERSONA + " You write complete, high-quality, SEO-friendly blog posts. "
    "Return a single clean JSON object only. All values must be strings."
)


def build_titles_prompt(domain: str, excluded_titles: Sequence[str]) -> str:
    lines = [
        f"Subject area: {domain}",
        f"Propose {TITLE_COUNT} distinct, specific and SEO-friendly blog post titles in this subject area.",
    ]
    recent = list(excluded_titles)[-MAX_EXCLUDED_IN_PROMPT:]
    if recent:
        lines.append("These titles were already published. Do not repeat them or cover the same angle:")
        lines.extend(f"- {title}" for title in recent)
    lines.append('Return JSON: {"titles": ["...", "...", "...", "...", "..."]}')
    return "\n".join(lines)


def build_draft_prompt(title: str, domain: Optional[str] = None) -> str:
    lines = [f"Post title: {title}"]
    if domain:
        lines.append(f"Subject area: {domain}")
    lines.extend(
        [
            "Write the complete blog post for this title.",
            "Structure the body with clear headings (<h2>, <h3>) and paragraphs (<p>) in valid HTML. "
            "The body must be a single string containing all HTML. Do not use Markdown.",
            "The excerpt is a short, 1-2 sentence plain-text summary of the post.",
            'Return JSON: {"body": "<p>...</p><h2>...</h2><p>...</p>", "excerpt": "..."}',
        ]
    )
    return "\n".join(lines)


class ArticleGenerator:
    """Generation service backed by a chat-completion API.

    Both methods return the raw completion text; callers sanitize it.
    """

    def __init__(self, config: PipelineConfig):
        self._config = config

    def _complete(self, system_prompt: str, user_prompt: str, *, max_tokens: int, label: str) -> str:
        logger.info("autoblogger.generation.request label=%s model=%s", label, self._config.llm_model)
        raw = call_llm_text(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            api_key=self._config.llm_api_key,
            base_url=self._config.llm_base_url,
            model=self._config.llm_model,
            timeout_seconds=self._config.timeout_seconds,
            max_tokens=max_tokens,
            retries=self._config.llm_retries,
            backoff_seconds=self._config.llm_backoff_seconds,
        )
        logger.info("autoblogger.generation.response label=%s length=%s", label, len(raw))
        return raw

    def generate_titles(self, domain: str, excluded_titles: Sequence[str]) -> str:
        return self._complete(
            TITLES_SYSTEM_PROMPT,
            build_titles_prompt(domain, excluded_titles),
            max_tokens=600,
            label="titles",
        )

    def generate_draft(self, title: str, domain: Optional[str] = None) -> str:
        return self._complete(
            DRAFT_SYSTEM_PROMPT,
            build_draft_prompt(title, domain),
            max_tokens=6000,
            label="draft",
        )
