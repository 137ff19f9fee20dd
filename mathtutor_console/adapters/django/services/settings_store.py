"""
Admin settings, data reset and backups.

Settings are one JSON object under math_tutor_settings, grouped in
sections (api, system, ui, notifications, data). Reads merge the stored
sections over DEFAULT_SETTINGS so that new fields always have a value.
"""
import copy
import logging
from datetime import timedelta, timezone as dt_timezone
from typing import Any, Dict, List, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from mathtutor_console.adapters.django.services.default_config import (
    now_timestamp,
)
from mathtutor_console.adapters.django.services.storage import (
    KeyValueStore,
    read_json,
    read_json_list,
    write_json,
)
from mathtutor_console.constants import (
    BACKUPS_KEY,
    CUSTOM_PROMPT_KEY,
    GEMINI_API_KEY_KEY,
    HIDDEN_SECRET,
    PROBLEMS_KEY,
    PROMPT_VERSIONS_KEY,
    RESETTABLE_KEYS,
    SETTINGS_KEY,
)

logger = logging.getLogger(__name__)

SECRET_FIELDS = ("geminiApiKey", "openaiApiKey", "anthropicApiKey")

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "api": {
        "geminiApiKey": "",
        "openaiApiKey": "",
        "anthropicApiKey": "",
        "apiTimeout": 30000,
        "maxRetries": 3,
    },
    "system": {
        "defaultDifficulty": "medium",
        "autoSave": True,
        "maxProblems": 1000,
        "maxConversations": 10000,
    },
    "ui": {
        "theme": "light",
        "language": "ko",
        "showDebugInfo": False,
        "compactMode": False,
    },
    "notifications": {
        "enableNotifications": True,
        "soundEnabled": True,
        "emailAlerts": False,
    },
    "data": {
        "autoBackup": True,
        "backupInterval": 24,
        "retentionDays": 30,
    },
}


def _merge(
    base: Dict[str, Dict[str, Any]], overrides: Dict[str, Any]
) -> Dict[str, Dict[str, Any]]:
    merged = copy.deepcopy(base)
    for section, values in (overrides or {}).items():
        if section not in merged:
            continue
        if isinstance(values, dict):
            merged[section].update(values)
    return merged


def _read_stored(store: KeyValueStore) -> Dict[str, Any]:
    try:
        stored = read_json(store, SETTINGS_KEY, {})
    except ValueError as e:
        logger.warning(f"Failed to load settings: {e}")
        return {}
    return stored if isinstance(stored, dict) else {}


def get_settings(store: KeyValueStore) -> Dict[str, Dict[str, Any]]:
    """Stored settings over defaults; Gemini key from its own entry."""
    settings = _merge(DEFAULT_SETTINGS, _read_stored(store))
    gemini_key = store.get(GEMINI_API_KEY_KEY)
    if gemini_key and not settings["api"].get("geminiApiKey"):
        settings["api"]["geminiApiKey"] = gemini_key
    return settings


def save_settings(
    store: KeyValueStore, data: Dict[str, Any]
) -> Dict[str, Dict[str, Any]]:
    """Merge data over current settings and persist the result."""
    if not isinstance(data, dict):
        raise ValueError("Settings must be a JSON object.")
    settings = _merge(get_settings(store), data)
    write_json(store, SETTINGS_KEY, settings)
    gemini_key = settings["api"].get("geminiApiKey")
    if gemini_key:
        store.set(GEMINI_API_KEY_KEY, gemini_key)
    logger.info("Saved settings")
    return settings


def get_api_key(store: KeyValueStore, field: str) -> str:
    """One API key from the api section ("" when unset)."""
    return get_settings(store)["api"].get(field) or ""


def export_settings(store: KeyValueStore) -> Dict[str, Dict[str, Any]]:
    """Settings with every API key replaced by a placeholder."""
    settings = get_settings(store)
    for field in SECRET_FIELDS:
        settings["api"][field] = HIDDEN_SECRET
    return settings


def import_settings(
    store: KeyValueStore, data: Any
) -> Dict[str, Dict[str, Any]]:
    """
    Merge an exported settings document into the current settings.
    Hidden placeholders keep the stored keys.
    """
    if not isinstance(data, dict):
        raise ValueError("Settings file format is invalid.")
    data = copy.deepcopy(data)
    api = data.get("api")
    if isinstance(api, dict):
        for field in SECRET_FIELDS:
            if api.get(field) == HIDDEN_SECRET:
                api.pop(field)
    logger.info(f"Importing settings sections={sorted(data.keys())}")
    return save_settings(store, data)


def reset_data(store: KeyValueStore) -> List[str]:
    """Remove problems, prompts and settings. Returns the removed keys."""
    removed = []
    for key in RESETTABLE_KEYS:
        if store.get(key) is not None:
            store.remove(key)
            removed.append(key)
    logger.warning(f"Reset console data keys={removed}")
    return removed


def create_backup(store: KeyValueStore) -> Dict[str, Any]:
    """Snapshot of problems, prompt, prompt history and settings."""
    return {
        "timestamp": now_timestamp(),
        "problems": read_json_list(store, PROBLEMS_KEY),
        "prompt": store.get(CUSTOM_PROMPT_KEY),
        "promptVersions": read_json_list(store, PROMPT_VERSIONS_KEY),
        "settings": get_settings(store),
    }


def list_backups(store: KeyValueStore) -> List[Dict[str, Any]]:
    return [
        b for b in read_json_list(store, BACKUPS_KEY) if isinstance(b, dict)
    ]


def store_backup(
    store: KeyValueStore, backup: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Append a backup to math_tutor_backups and drop backups older than
    data.retentionDays.
    """
    if backup is None:
        backup = create_backup(store)
    retention_days = get_settings(store)["data"].get("retentionDays")
    kept = list_backups(store)
    if isinstance(retention_days, int) and retention_days > 0:
        cutoff = timezone.now() - timedelta(days=retention_days)
        kept = [b for b in kept if not _older_than(b, cutoff)]
    kept.append(backup)
    write_json(store, BACKUPS_KEY, kept)
    logger.info(
        f"Stored backup timestamp={backup.get('timestamp')} "
        f"backups={len(kept)}"
    )
    return backup


def _older_than(backup: Dict[str, Any], cutoff) -> bool:
    value = backup.get("timestamp")
    parsed = parse_datetime(value) if isinstance(value, str) else None
    if parsed is None:
        return False
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed < cutoff
