import logging
import os
from typing import Any, Dict, Optional, Tuple

import httpx

logger = logging.getLogger("voxarena_backend")

_CLIENT_CACHE: Dict[Tuple[str, float, Optional[str]], "ChatCompletionsClient"] = {}
TRACE_API_CALLS = os.getenv("TRACE_API_CALLS", "true").strip().lower() in {"1", "true", "yes", "on"}
API_LOG_PREVIEW_CHARS = int(os.getenv("API_LOG_PREVIEW_CHARS", "280"))


def _preview_text(value: Any, limit: int = API_LOG_PREVIEW_CHARS) -> str:
    text = str(value or "")
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...<truncated {len(text) - limit} chars>"


def extract_message_text(response: Dict[str, Any]) -> str:
    """First choice's message content, stripped; empty string when missing."""
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content.strip() if isinstance(content, str) else ""


def get_chat_client(config: Dict[str, Any]) -> "ChatCompletionsClient":
    base_url = str(config.get("base_url", "")).rstrip("/")
    timeout = float(config.get("timeout_seconds", 30))
    api_key = config.get("api_key")

    key = (base_url, timeout, api_key)
    if key not in _CLIENT_CACHE:
        _CLIENT_CACHE[key] = ChatCompletionsClient(base_url, api_key=api_key, timeout_seconds=timeout)
    return _CLIENT_CACHE[key]


class ChatCompletionsClient:
    """Minimal client for an OpenAI-compatible ``/v1/chat/completions`` endpoint."""

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout_seconds: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def chat(
        self,
        model: str,
        messages: list,
        temperature: float = 0.7,
        max_tokens: int = 600,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        url = f"{self.base_url}/v1/chat/completions"
        if TRACE_API_CALLS:
            logger.info("[LLM API] POST %s model=%s messages=%s", url, model, len(messages or []))
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            if TRACE_API_CALLS:
                logger.info(
                    "[LLM API] %s status=%s preview=%s",
                    url,
                    response.status_code,
                    _preview_text(response.text),
                )
            return response.json()
