"""
Key/value persistence for console state.

Every piece of console state (LLM config list, selected config id,
problems, settings, prompt history, backups) lives under one string key.
KeyValueStore is the injected interface; DatabaseKeyValueStore persists to
the StoredValue model and InMemoryKeyValueStore keeps a dict (tests,
scripts). Writes send the storage_changed signal.
"""
import json
import logging
from typing import Any, Dict, Iterable, Optional

from django.utils.module_loading import import_string

from mathtutor_console.adapters.django.conf import get_store_path
from mathtutor_console.adapters.django.signals import storage_changed

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Minimal string key/value store with change notification.

    Subclasses implement _get, _set, _remove and keys. origin identifies
    the writer so that listeners can skip their own writes.
    """

    def get(self, key: str) -> Optional[str]:
        return self._get(key)

    def set(self, key: str, value: str, origin: Any = None) -> None:
        self._set(key, "" if value is None else str(value))
        self._notify(key, origin)

    def remove(self, key: str, origin: Any = None) -> None:
        if self._remove(key):
            self._notify(key, origin)

    def keys(self) -> Iterable[str]:
        raise NotImplementedError

    def _get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def _remove(self, key: str) -> bool:
        raise NotImplementedError

    def _notify(self, key: str, origin: Any) -> None:
        storage_changed.send(
            sender=self.__class__,
            store=self,
            key=key,
            origin=origin,
        )


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Not shared between instances."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def keys(self) -> Iterable[str]:
        return list(self._data.keys())

    def _get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _set(self, key: str, value: str) -> None:
        self._data[key] = value

    def _remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class DatabaseKeyValueStore(KeyValueStore):
    """Store backed by the StoredValue model (one row per key)."""

    def keys(self) -> Iterable[str]:
        from mathtutor_console.adapters.django.models import StoredValue

        return list(StoredValue.objects.values_list("key", flat=True))

    def _get(self, key: str) -> Optional[str]:
        from mathtutor_console.adapters.django.models import StoredValue

        row = StoredValue.objects.filter(key=key).first()
        return row.value if row is not None else None

    def _set(self, key: str, value: str) -> None:
        from mathtutor_console.adapters.django.models import StoredValue

        StoredValue.objects.update_or_create(
            key=key,
            defaults={"value": value},
        )

    def _remove(self, key: str) -> bool:
        from mathtutor_console.adapters.django.models import StoredValue

        deleted, _ = StoredValue.objects.filter(key=key).delete()
        return bool(deleted)

    def __eq__(self, other):
        # All database stores share the same rows.
        return isinstance(other, DatabaseKeyValueStore)

    def __hash__(self):
        return hash(DatabaseKeyValueStore)


_default_store: Optional[KeyValueStore] = None


def get_default_store() -> KeyValueStore:
    """
    Return the process-wide store built from MATHTUTOR_CONSOLE_STORE.
    """
    global _default_store
    if _default_store is None:
        store_cls = import_string(get_store_path())
        _default_store = store_cls()
    return _default_store


def reset_default_store() -> None:
    """Drop the cached default store (next call rebuilds it)."""
    global _default_store
    _default_store = None


def read_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    """
    Parse the JSON value under key. Absent or blank values return default;
    malformed JSON raises ValueError (json.JSONDecodeError).
    """
    raw = store.get(key)
    if raw is None or not raw.strip():
        return default
    return json.loads(raw)


def read_json_list(store: KeyValueStore, key: str) -> list:
    """
    Like read_json for list-valued keys; unreadable values are logged and
    treated as an empty list.
    """
    try:
        value = read_json(store, key, [])
    except ValueError as e:
        logger.warning(f"Failed to parse stored list key={key}: {e}")
        return []
    if not isinstance(value, list):
        logger.warning(f"Stored value is not a list key={key}")
        return []
    return value


def write_json(
    store: KeyValueStore,
    key: str,
    value: Any,
    origin: Any = None,
) -> None:
    """Serialize value to JSON and store it under key."""
    store.set(key, json.dumps(value, ensure_ascii=False), origin=origin)
