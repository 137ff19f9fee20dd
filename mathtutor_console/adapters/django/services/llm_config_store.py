"""
Admin operations on the stored LLM config list.

Create, update, delete, activate and deactivate configs in the store.
Every write sends llm_config_updated so watching resolvers re-resolve.
The system default config cannot be deleted or deactivated.
"""
import logging
from typing import Any, Dict, List, Optional

from mathtutor_console.adapters.django.services.config_resolver import (
    resolve_active_llm_config,
)
from mathtutor_console.adapters.django.services.default_config import (
    default_input_schema,
    default_response_schema,
    new_id,
    now_timestamp,
)
from mathtutor_console.adapters.django.services.storage import (
    KeyValueStore,
    write_json,
)
from mathtutor_console.adapters.django.signals import llm_config_updated
from mathtutor_console.constants import (
    ACTIVE_LLM_CONFIG_ID_KEY,
    DEFAULT_CONFIG_VERSION,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_PROVIDER,
    DEFAULT_RESPONSE_MIME_TYPE,
    DEFAULT_TEMPERATURE,
    DEFAULT_THINKING_BUDGET,
    LLM_CONFIGS_KEY,
)

logger = logging.getLogger(__name__)

# Fields an admin may edit; identity and lifecycle flags are managed here.
EDITABLE_FIELDS = (
    "name",
    "description",
    "version",
    "systemPrompt",
    "userPrompt",
    "inputSchema",
    "outputSchema",
    "responseMimeType",
    "provider",
    "model",
    "temperature",
    "maxOutputTokens",
    "thinkingBudget",
)
# Blank values for these are dropped from the record.
OPTIONAL_TEXT_FIELDS = ("description", "userPrompt")


class ConfigNotFound(LookupError):
    """No LLM config with the given id."""


def list_configs(store: KeyValueStore) -> List[Dict[str, Any]]:
    """
    Return the healed config list (resolution seeds/repairs as needed).
    Raises ValueError when the stored list cannot be read.
    """
    state = resolve_active_llm_config(store)
    if state.error and not state.configs:
        raise ValueError(state.error)
    return state.configs


def get_config(store: KeyValueStore, config_id: str) -> Dict[str, Any]:
    for config in list_configs(store):
        if config.get("id") == config_id:
            return config
    raise ConfigNotFound(config_id)


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, str):
            value = value.strip()
        if key in OPTIONAL_TEXT_FIELDS and not value:
            value = None
        out[key] = value
    return out


def _save(
    store: KeyValueStore,
    configs: List[Dict[str, Any]],
    config: Optional[Dict[str, Any]],
) -> None:
    write_json(store, LLM_CONFIGS_KEY, configs)
    llm_config_updated.send(sender=KeyValueStore, store=store, config=config)


def _index_of(configs: List[Dict[str, Any]], config_id: str) -> int:
    for i, config in enumerate(configs):
        if config.get("id") == config_id:
            return i
    raise ConfigNotFound(config_id)


def create_config(
    store: KeyValueStore, data: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Append a new config. New configs start inactive and non-system.
    Raises ValueError when name is blank.
    """
    values = _clean(data)
    if not values.get("name"):
        raise ValueError("Name is required.")
    configs = list_configs(store)
    now = now_timestamp()
    config = {
        "id": new_id(),
        "name": values["name"],
        "version": values.get("version") or DEFAULT_CONFIG_VERSION,
        "systemPrompt": values.get("systemPrompt") or "",
        "inputSchema": values.get("inputSchema") or default_input_schema(),
        "outputSchema": (
            values.get("outputSchema") or default_response_schema()
        ),
        "responseMimeType": (
            values.get("responseMimeType") or DEFAULT_RESPONSE_MIME_TYPE
        ),
        "provider": values.get("provider") or DEFAULT_PROVIDER,
        "model": values.get("model") or DEFAULT_MODEL,
        "temperature": values.get("temperature", DEFAULT_TEMPERATURE),
        "maxOutputTokens": values.get(
            "maxOutputTokens", DEFAULT_MAX_OUTPUT_TOKENS
        ),
        "thinkingBudget": values.get(
            "thinkingBudget", DEFAULT_THINKING_BUDGET
        ),
        "createdAt": now,
        "updatedAt": now,
        "isActive": False,
        "isSystem": False,
    }
    for key in OPTIONAL_TEXT_FIELDS:
        if values.get(key):
            config[key] = values[key]
    configs.append(config)
    _save(store, configs, config)
    logger.info(
        f"Created LLM config config_id={config['id']} name={config['name']}"
    )
    return config


def update_config(
    store: KeyValueStore, config_id: str, data: Dict[str, Any]
) -> Dict[str, Any]:
    """Apply edits to one config. isSystem and isActive are not editable."""
    values = _clean(data)
    if "name" in values and not values["name"]:
        raise ValueError("Name is required.")
    configs = list_configs(store)
    index = _index_of(configs, config_id)
    config = dict(configs[index])
    for key, value in values.items():
        if value is None and key in OPTIONAL_TEXT_FIELDS:
            config.pop(key, None)
        else:
            config[key] = value
    config["updatedAt"] = now_timestamp()
    configs[index] = config
    _save(store, configs, config)
    logger.info(f"Updated LLM config config_id={config_id}")
    return config


def delete_config(store: KeyValueStore, config_id: str) -> None:
    """
    Remove one config. The system default and the last remaining config
    cannot be deleted. Deleting the selected config selects the first
    remaining one.
    """
    configs = list_configs(store)
    index = _index_of(configs, config_id)
    if configs[index].get("isSystem"):
        raise ValueError("The system default config cannot be deleted.")
    if len(configs) <= 1:
        raise ValueError("At least one config is required.")
    configs.pop(index)
    if store.get(ACTIVE_LLM_CONFIG_ID_KEY) == config_id:
        store.set(ACTIVE_LLM_CONFIG_ID_KEY, configs[0].get("id"))
    _save(store, configs, None)
    logger.info(f"Deleted LLM config config_id={config_id}")


def activate_config(store: KeyValueStore, config_id: str) -> Dict[str, Any]:
    """Mark the config active and make it the selected one."""
    configs = list_configs(store)
    index = _index_of(configs, config_id)
    config = dict(configs[index], isActive=True)
    configs[index] = config
    write_json(store, LLM_CONFIGS_KEY, configs)
    store.set(ACTIVE_LLM_CONFIG_ID_KEY, config_id)
    llm_config_updated.send(sender=KeyValueStore, store=store, config=config)
    logger.info(f"Activated LLM config config_id={config_id}")
    return config


def deactivate_config(
    store: KeyValueStore, config_id: str
) -> Dict[str, Any]:
    """Mark the config inactive. Refused for the system default."""
    configs = list_configs(store)
    index = _index_of(configs, config_id)
    if configs[index].get("isSystem"):
        raise ValueError("The system default config cannot be deactivated.")
    config = dict(configs[index], isActive=False)
    configs[index] = config
    _save(store, configs, config)
    logger.info(f"Deactivated LLM config config_id={config_id}")
    return config
