import os
from typing import Any, Dict, Optional

DEFAULT_BASE_URL = "https://api.openai.com"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"


def _to_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def get_env_llm_defaults() -> Dict[str, Any]:
    return {
        "api_key": (os.getenv("OPENAI_API_KEY") or "").strip() or None,
        "base_url": os.getenv("DESCRIPTION_LLM_BASE_URL", DEFAULT_BASE_URL),
        "chat_model": os.getenv("DESCRIPTION_LLM_MODEL", DEFAULT_CHAT_MODEL),
        "temperature": _to_float(os.getenv("DESCRIPTION_LLM_TEMPERATURE"), 0.7),
        "max_tokens": int(_to_float(os.getenv("DESCRIPTION_LLM_MAX_TOKENS"), 600)),
        "timeout_seconds": _to_float(os.getenv("DESCRIPTION_LLM_TIMEOUT_SECONDS"), 30.0),
    }


def merge_llm_config(overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    config = get_env_llm_defaults()
    if not overrides:
        return config

    sanitized = {}
    for key, value in overrides.items():
        if key not in config:
            continue
        if key in {"temperature", "timeout_seconds"}:
            sanitized[key] = _to_float(value, config[key])
        elif key == "max_tokens":
            sanitized[key] = int(_to_float(value, config[key]))
        elif key == "base_url":
            sanitized[key] = str(value).strip().rstrip("/") or config[key]
        else:
            sanitized[key] = value

    config.update(sanitized)
    return config


# Request keys a caller may override per call. Credentials and the endpoint
# stay env-only.
REQUEST_OVERRIDE_KEYS = {
    "model": "chat_model",
    "temperature": "temperature",
    "maxTokens": "max_tokens",
}


def overrides_from_request(body: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Map a request body's override keys onto config keys, dropping the rest."""
    if not isinstance(body, dict):
        return {}
    return {
        config_key: body[request_key]
        for request_key, config_key in REQUEST_OVERRIDE_KEYS.items()
        if body.get(request_key) is not None
    }
