import pytest

from autoblogger.api.config import (
    ANTHROPIC_BASE_URL,
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_DOMAINS,
    GEMINI_BASE_URL,
    OPENAI_BASE_URL,
    PipelineConfig,
    load_config,
)
from autoblogger.api.errors import ConfigError

ENV_NAMES = (
    "WP_URL",
    "WP_USER",
    "WP_PASSWORD",
    "WP_REST_BASE",
    "WP_POST_STATUS",
    "WP_CATEGORY_IDS",
    "WP_TAG_IDS",
    "AUTOBLOGGER_LLM_API_KEY",
    "AUTOBLOGGER_LLM_BASE_URL",
    "AUTOBLOGGER_LLM_MODEL",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_GEMINI_API_KEY",
    "AUTOBLOGGER_LLM_RETRIES",
    "AUTOBLOGGER_LLM_RETRY_BACKOFF_SECONDS",
    "AUTOBLOGGER_HTTP_TIMEOUT_SECONDS",
    "AUTOBLOGGER_DOMAINS",
    "AUTOBLOGGER_HISTORY_PATH",
    "AUTOBLOGGER_BACKGROUND_PATH",
    "AUTOBLOGGER_CHARS_PER_LINE",
    "AUTOBLOGGER_DRY_RUN",
    "AUTOBLOGGER_DRY_RUN_OUTPUT_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.domains == DEFAULT_DOMAINS
    assert config.post_status == "publish"
    assert config.chars_per_line == 30
    assert config.history_path == "published_titles.txt"
    assert config.background_path == "background.png"
    assert config.dry_run is False
    assert config.llm_base_url == OPENAI_BASE_URL


def test_wordpress_settings(monkeypatch):
    monkeypatch.setenv("WP_URL", " https://blog.example.com/ ")
    monkeypatch.setenv("WP_USER", "editor")
    monkeypatch.setenv("WP_PASSWORD", "pass word")
    monkeypatch.setenv("WP_POST_STATUS", "Draft")
    monkeypatch.setenv("WP_CATEGORY_IDS", "3, 7,")
    config = load_config()
    assert config.wp_url == "https://blog.example.com"
    assert config.post_status == "draft"
    assert config.category_ids == (3, 7)
    assert config.tag_ids == ()


def test_domains_are_semicolon_separated(monkeypatch):
    monkeypatch.setenv("AUTOBLOGGER_DOMAINS", "Rust async; Kubernetes operators ;")
    assert load_config().domains == ("Rust async", "Kubernetes operators")


def test_anthropic_key_selects_provider(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    config = load_config()
    assert config.llm_api_key == "sk-ant"
    assert config.llm_base_url == ANTHROPIC_BASE_URL
    assert config.llm_model == DEFAULT_ANTHROPIC_MODEL


def test_gemini_key_selects_provider(monkeypatch):
    monkeypatch.setenv("GOOGLE_GEMINI_API_KEY", "g-key")
    assert load_config().llm_base_url == GEMINI_BASE_URL


def test_explicit_model_wins(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk")
    monkeypatch.setenv("AUTOBLOGGER_LLM_MODEL", "gpt-4o")
    config = load_config()
    assert config.llm_model == "gpt-4o"
    assert config.llm_base_url == OPENAI_BASE_URL


def test_invalid_integer_raises(monkeypatch):
    monkeypatch.setenv("AUTOBLOGGER_HTTP_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ConfigError) as excinfo:
        load_config()
    assert "AUTOBLOGGER_HTTP_TIMEOUT_SECONDS" in str(excinfo.value)


def test_invalid_id_list_raises(monkeypatch):
    monkeypatch.setenv("WP_TAG_IDS", "1,two")
    with pytest.raises(ConfigError):
        load_config()


def test_invalid_post_status_raises(monkeypatch):
    monkeypatch.setenv("WP_POST_STATUS", "live")
    with pytest.raises(ConfigError):
        load_config()


def test_line_limit_must_be_positive(monkeypatch):
    monkeypatch.setenv("AUTOBLOGGER_CHARS_PER_LINE", "0")
    with pytest.raises(ConfigError):
        load_config()


def test_dry_run_flags(monkeypatch, tmp_path):
    monkeypatch.setenv("AUTOBLOGGER_DRY_RUN", "yes")
    monkeypatch.setenv("AUTOBLOGGER_DRY_RUN_OUTPUT_DIR", str(tmp_path))
    config = load_config()
    assert config.dry_run is True
    assert config.dry_run_output_dir == str(tmp_path)


def test_validate_reports_missing_settings():
    assert PipelineConfig().validate() == ["AUTOBLOGGER_LLM_API_KEY", "WP_URL", "WP_USER", "WP_PASSWORD"]
    assert PipelineConfig(llm_api_key="k", dry_run=True).validate() == []
    assert PipelineConfig(llm_api_key="k", dry_run=True, domains=()).validate() == ["AUTOBLOGGER_DOMAINS"]
