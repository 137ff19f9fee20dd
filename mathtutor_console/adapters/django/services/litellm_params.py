"""
Build LiteLLM completion params from an LLM config.

Used by the diagnostic chat for providers other than gemini (which goes
through the generateContent REST client). API keys come from the api
section of the admin settings.
"""
from typing import Any, Dict

from mathtutor_console.constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
)

DEFAULT_MODELS: Dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "gemini": "gemini-2.5-pro",
}
# Settings field (api section) holding each provider's key.
PROVIDER_SETTINGS_KEYS: Dict[str, str] = {
    "openai": "openaiApiKey",
    "anthropic": "anthropicApiKey",
    "gemini": "geminiApiKey",
}


def normalize_provider(provider: str) -> str:
    return (provider or "gemini").strip().lower()


def _model_string(provider: str, config: dict) -> str:
    """
    LiteLLM model string. Falls back to each provider's small default
    model when the config names none.
    """
    provider = normalize_provider(provider)
    model = (config.get("model") or "").strip() or DEFAULT_MODELS.get(
        provider, DEFAULT_MODELS["openai"]
    )
    if provider in ("gemini", "anthropic"):
        return f"{provider}/{model}" if "/" not in model else model
    return model


def build_litellm_params_from_config(
    config: dict, api_key: str
) -> Dict[str, Any]:
    """
    litellm.completion() kwargs (without messages) for config.

    Raises:
        ValueError: If api_key is empty.
    """
    config = config or {}
    provider = normalize_provider(config.get("provider"))
    if not api_key:
        name = "OpenAI" if provider == "openai" else provider.title()
        raise ValueError(f"{name} configuration is incomplete. Set api_key.")
    kwargs = {
        "model": _model_string(provider, config),
        "api_key": api_key,
    }
    defaults = (
        ("max_tokens", "maxOutputTokens", DEFAULT_MAX_OUTPUT_TOKENS),
        ("temperature", "temperature", DEFAULT_TEMPERATURE),
    )
    for key, field, default in defaults:
        value = config.get(field)
        kwargs[key] = default if value is None else value
    if (config.get("responseMimeType") or "") == "application/json":
        kwargs["response_format"] = {"type": "json_object"}
    kwargs["drop_params"] = True
    return {k: v for k, v in kwargs.items() if v is not None}
