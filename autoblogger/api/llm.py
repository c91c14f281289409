from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import requests

logger = logging.getLogger("autoblogger.llm")

RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504}
ANTHROPIC_VERSION = "2023-06-01"


class LLMError(RuntimeError):
    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class Provider(NamedTuple):
    endpoint: Callable[[str], str]
    headers: Callable[[str], Dict[str, str]]
    payload: Callable[[str, str, str, int, float], Dict[str, Any]]
    text: Callable[[Dict[str, Any]], str]


def _openai_text(body: Dict[str, Any]) -> str:
    choices = body.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict) and message.get("content"):
            return str(message["content"])
    return ""


def _anthropic_text(body: Dict[str, Any]) -> str:
    blocks = body.get("content")
    if not isinstance(blocks, list):
        return ""
    texts = [
        block["text"].strip()
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str)
    ]
    return "\n".join(text for text in texts if text)


def _gemini_text(body: Dict[str, Any]) -> str:
    candidates = body.get("candidates")
    if not (isinstance(candidates, list) and candidates and isinstance(candidates[0], dict)):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    texts: List[str] = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
    return "".join(texts).strip()


PROVIDERS: Dict[str, Provider] = {
    "openai": Provider(
        endpoint=lambda model: "/chat/completions",
        headers=lambda key: {"Authorization": f"Bearer {key}"},
        payload=lambda model, system, user, max_tokens, temperature: {
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        },
        text=_openai_text,
    ),
    "anthropic": Provider(
        endpoint=lambda model: "/messages",
        headers=lambda key: {"x-api-key": key, "anthropic-version": ANTHROPIC_VERSION},
        payload=lambda model, system, user, max_tokens, temperature: {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        },
        text=_anthropic_text,
    ),
    "gemini": Provider(
        endpoint=lambda model: f"/models/{model}:generateContent",
        headers=lambda key: {"x-goog-api-key": key},
        payload=lambda model, system, user, max_tokens, temperature: {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": user}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        },
        text=_gemini_text,
    ),
}


def detect_provider(base_url: str, model: str) -> str:
    lowered_url = (base_url or "").lower()
    lowered_model = (model or "").strip().lower()
    if "anthropic" in lowered_url or lowered_model.startswith("claude"):
        return "anthropic"
    if "googleapis" in lowered_url or lowered_model.startswith("gemini"):
        return "gemini"
    return "openai"


def _complete_once(
    provider: Provider,
    *,
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    base_url: str,
    model: str,
    timeout_seconds: int,
    max_tokens: int,
    temperature: float,
) -> str:
    url = base_url.rstrip("/") + provider.endpoint(model)
    headers = {"Content-Type": "application/json", **provider.headers(api_key)}
    payload = provider.payload(model, system_prompt, user_prompt, max_tokens, temperature)
    try:
        response = requests.post(url, headers=headers, json=payload, timeout=timeout_seconds)
    except requests.RequestException as exc:
        raise LLMError(f"LLM request failed: {exc}", retryable=True) from exc

    if response.status_code >= 400:
        raise LLMError(
            f"LLM HTTP {response.status_code}: {response.text[:400]}",
            retryable=response.status_code in RETRYABLE_STATUS_CODES,
        )
    try:
        body = response.json()
    except ValueError as exc:
        raise LLMError("LLM returned non-JSON response.") from exc
    if not isinstance(body, dict):
        raise LLMError("LLM returned unexpected JSON payload.")

    text = provider.text(body)
    if not text:
        raise LLMError("LLM response missing content.")
    return text


def call_llm_text(
    *,
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    base_url: str,
    model: str,
    timeout_seconds: int,
    max_tokens: int = 4000,
    temperature: float = 0.7,
    retries: int = 2,
    backoff_seconds: float = 2.0,
) -> str:
    """Return the raw completion text. Parsing is left to the caller."""
    if not api_key:
        raise LLMError("Missing LLM API key.")
    name = detect_provider(base_url, model)
    provider = PROVIDERS[name]

    last_error: Optional[LLMError] = None
    for attempt in range(retries + 1):
        try:
            return _complete_once(
                provider,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                api_key=api_key,
                base_url=base_url,
                model=model,
                timeout_seconds=timeout_seconds,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except LLMError as exc:
            last_error = exc
            if attempt >= retries or not exc.retryable:
                break
            sleep_seconds = backoff_seconds * (2 ** attempt)
            logger.warning(
                "autoblogger.llm_retry provider=%s attempt=%s/%s sleep=%.1fs error=%s",
                name,
                attempt + 1,
                retries + 1,
                sleep_seconds,
                exc,
            )
            time.sleep(sleep_seconds)

    raise last_error or LLMError("LLM request failed.")
