from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import ConfigError
from .layout import DEFAULT_CHARS_PER_LINE

DEFAULT_WP_REST_BASE = "/wp-json/wp/v2"
DEFAULT_POST_STATUS = "publish"
DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_LLM_RETRIES = 2
DEFAULT_LLM_BACKOFF_SECONDS = 2.0
DEFAULT_HISTORY_PATH = "published_titles.txt"
DEFAULT_BACKGROUND_PATH = "background.png"

OPENAI_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

DEFAULT_DOMAINS: Tuple[str, ...] = (
    "Building a simple DAO with Solidity",
    "Microfrontend architecture deep dive",
    "Getting started with AWS Lambda for Node.js developers",
)


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got '{raw}'.") from exc


def _read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name, str(default)).strip()
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got '{raw}'.") from exc


def _read_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "true" if default else "false").strip().lower()
    return raw in {"1", "true", "yes", "on"}


def _read_int_list_env(name: str) -> List[int]:
    raw = os.getenv(name, "").strip()
    values: List[int] = []
    for part in raw.split(","):
        cleaned = part.strip()
        if not cleaned:
            continue
        try:
            values.append(int(cleaned))
        except ValueError as exc:
            raise ConfigError(f"{name} must be a comma-separated list of integers, got '{raw}'.") from exc
    return values


def _read_domains_env(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return DEFAULT_DOMAINS
    domains = tuple(part.strip() for part in raw.split(";") if part.strip())
    return domains or DEFAULT_DOMAINS


def _resolve_llm() -> Tuple[str, str, str]:
    explicit_key = os.getenv("AUTOBLOGGER_LLM_API_KEY", "").strip()
    openai_key = os.getenv("OPENAI_API_KEY", "").strip()
    anthropic_key = os.getenv("ANTHROPIC_API_KEY", "").strip()
    gemini_key = os.getenv("GOOGLE_GEMINI_API_KEY", "").strip()
    api_key = explicit_key or openai_key or anthropic_key or gemini_key

    explicit_base_url = os.getenv("AUTOBLOGGER_LLM_BASE_URL", "").strip()
    if explicit_base_url:
        base_url = explicit_base_url
    elif openai_key or (explicit_key and not anthropic_key and not gemini_key):
        base_url = OPENAI_BASE_URL
    elif anthropic_key:
        base_url = ANTHROPIC_BASE_URL
    elif gemini_key:
        base_url = GEMINI_BASE_URL
    else:
        base_url = OPENAI_BASE_URL

    explicit_model = os.getenv("AUTOBLOGGER_LLM_MODEL", "").strip()
    if explicit_model:
        model = explicit_model
    elif "anthropic" in base_url.lower():
        model = DEFAULT_ANTHROPIC_MODEL
    elif "googleapis" in base_url.lower():
        model = DEFAULT_GEMINI_MODEL
    else:
        model = DEFAULT_OPENAI_MODEL
    return api_key, base_url, model


@dataclass(frozen=True)
class PipelineConfig:
    wp_url: str = ""
    wp_user: str = ""
    wp_password: str = ""
    wp_rest_base: str = DEFAULT_WP_REST_BASE
    post_status: str = DEFAULT_POST_STATUS
    category_ids: Tuple[int, ...] = ()
    tag_ids: Tuple[int, ...] = ()
    llm_api_key: str = ""
    llm_base_url: str = OPENAI_BASE_URL
    llm_model: str = DEFAULT_OPENAI_MODEL
    llm_retries: int = DEFAULT_LLM_RETRIES
    llm_backoff_seconds: float = DEFAULT_LLM_BACKOFF_SECONDS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    domains: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_DOMAINS)
    history_path: str = DEFAULT_HISTORY_PATH
    background_path: str = DEFAULT_BACKGROUND_PATH
    chars_per_line: int = DEFAULT_CHARS_PER_LINE
    dry_run: bool = False
    dry_run_output_dir: Optional[str] = None

    def validate(self) -> List[str]:
        """Return the settings that are missing for this run mode."""
        missing: List[str] = []
        if not self.domains:
            missing.append("AUTOBLOGGER_DOMAINS")
        if not self.llm_api_key:
            missing.append("AUTOBLOGGER_LLM_API_KEY")
        if not self.dry_run:
            for name, value in (("WP_URL", self.wp_url), ("WP_USER", self.wp_user), ("WP_PASSWORD", self.wp_password)):
                if not value:
                    missing.append(name)
        return missing


def load_config() -> PipelineConfig:
    api_key, base_url, model = _resolve_llm()
    post_status = os.getenv("WP_POST_STATUS", DEFAULT_POST_STATUS).strip().lower()
    if post_status not in {"publish", "draft", "pending", "private", "future"}:
        raise ConfigError(f"WP_POST_STATUS is not a valid WordPress status: '{post_status}'.")
    chars_per_line = _read_int_env("AUTOBLOGGER_CHARS_PER_LINE", DEFAULT_CHARS_PER_LINE)
    if chars_per_line < 1:
        raise ConfigError("AUTOBLOGGER_CHARS_PER_LINE must be at least 1.")
    output_dir = os.getenv("AUTOBLOGGER_DRY_RUN_OUTPUT_DIR", "").strip()
    return PipelineConfig(
        wp_url=os.getenv("WP_URL", "").strip().rstrip("/"),
        wp_user=os.getenv("WP_USER", "").strip(),
        wp_password=os.getenv("WP_PASSWORD", "").strip(),
        wp_rest_base=os.getenv("WP_REST_BASE", DEFAULT_WP_REST_BASE).strip() or DEFAULT_WP_REST_BASE,
        post_status=post_status,
        category_ids=tuple(_read_int_list_env("WP_CATEGORY_IDS")),
        tag_ids=tuple(_read_int_list_env("WP_TAG_IDS")),
        llm_api_key=api_key,
        llm_base_url=base_url,
        llm_model=model,
        llm_retries=_read_int_env("AUTOBLOGGER_LLM_RETRIES", DEFAULT_LLM_RETRIES),
        llm_backoff_seconds=_read_float_env("AUTOBLOGGER_LLM_RETRY_BACKOFF_SECONDS", DEFAULT_LLM_BACKOFF_SECONDS),
        timeout_seconds=_read_int_env("AUTOBLOGGER_HTTP_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        domains=_read_domains_env("AUTOBLOGGER_DOMAINS"),
        history_path=os.getenv("AUTOBLOGGER_HISTORY_PATH", DEFAULT_HISTORY_PATH).strip() or DEFAULT_HISTORY_PATH,
        background_path=os.getenv("AUTOBLOGGER_BACKGROUND_PATH", DEFAULT_BACKGROUND_PATH).strip()
        or DEFAULT_BACKGROUND_PATH,
        chars_per_line=chars_per_line,
        dry_run=_read_bool_env("AUTOBLOGGER_DRY_RUN", False),
        dry_run_output_dir=output_dir or None,
    )
