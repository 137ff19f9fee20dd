"""
Service layer: storage, active LLM config resolution, config management,
problems, prompt versions, settings and the diagnostic chat.
For resolving the active config from host code, use
from mathtutor_console.adapters.django import ActiveLLMConfigResolver.
"""
from mathtutor_console.adapters.django.services.config_resolver import (
    ActiveLLMConfigResolver,
    ResolvedConfigState,
    resolve_active_llm_config,
)
from mathtutor_console.adapters.django.services.diagnostic import (
    run_diagnostic,
)
from mathtutor_console.adapters.django.services.gemini_client import (
    GeminiAPIError,
    generate_content,
)
from mathtutor_console.adapters.django.services.llm_config_store import (
    ConfigNotFound,
)
from mathtutor_console.adapters.django.services.storage import (
    DatabaseKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    get_default_store,
)

__all__ = [
    "ActiveLLMConfigResolver",
    "ConfigNotFound",
    "DatabaseKeyValueStore",
    "GeminiAPIError",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "ResolvedConfigState",
    "generate_content",
    "get_default_store",
    "resolve_active_llm_config",
    "run_diagnostic",
]
