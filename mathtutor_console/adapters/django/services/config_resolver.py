"""
Resolve the active LLM config from the key/value store.

The store holds the config list (JSON) and the selected config id (plain
string). Resolution always yields a snapshot of the full list, the active
subset and the current config, healing the stored state on the way:

1. Empty or absent list: seed the system default, select it, start over.
2. No isSystem entry: prepend a fresh system default.
3. System entry disabled: re-enable it.
4. Current config: stored id if that config is active, else the first
   active config, else the first config. A changed selection is written
   back.

Parse errors never raise; they come back as snapshot.error.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from mathtutor_console.adapters.django.services.default_config import (
    build_default_llm_config,
)
from mathtutor_console.adapters.django.services.storage import (
    KeyValueStore,
    get_default_store,
    write_json,
)
from mathtutor_console.adapters.django.signals import (
    llm_config_updated,
    storage_changed,
)
from mathtutor_console.constants import (
    ACTIVE_LLM_CONFIG_ID_KEY,
    LLM_CONFIGS_KEY,
    LLM_CONFIG_STORAGE_KEYS,
)

logger = logging.getLogger(__name__)

TASK_RESOLVE_LLM_CONFIG = "resolve_llm_config"

# Seeding restarts resolution once; a second empty read means the store
# did not keep the write.
MAX_RESOLVE_PASSES = 2

Listener = Callable[["ResolvedConfigState"], None]


@dataclass
class ResolvedConfigState:
    """Snapshot produced by one resolution pass."""

    configs: List[Dict[str, Any]] = field(default_factory=list)
    active_configs: List[Dict[str, Any]] = field(default_factory=list)
    config: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configs": self.configs,
            "active_configs": self.active_configs,
            "config": self.config,
            "error": self.error,
        }


class ActiveLLMConfigResolver:
    """
    Resolves and watches the active LLM config for one store.

    Call resolve() for a fresh snapshot. After start(), the resolver also
    re-resolves on storage_changed (for the two config keys of its own
    store, written by someone else) and on llm_config_updated, and pushes
    each new snapshot to subscribed listeners.
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store if store is not None else get_default_store()
        self._state: Optional[ResolvedConfigState] = None
        self._listeners: List[Listener] = []
        self._started = False

    @property
    def state(self) -> ResolvedConfigState:
        if self._state is None:
            return self.resolve()
        return self._state

    def resolve(self) -> ResolvedConfigState:
        """Run resolution against the store and cache the snapshot."""
        logger.info(f"Starting {TASK_RESOLVE_LLM_CONFIG}")
        state = None
        for _ in range(MAX_RESOLVE_PASSES):
            state = self._resolve_pass()
            if state is not None:
                break
        if state is None:
            state = ResolvedConfigState(
                error="Stored LLM configs could not be initialized.",
            )
        self._state = state
        if state.error:
            logger.error(
                f"Failed {TASK_RESOLVE_LLM_CONFIG} error={state.error}"
            )
        else:
            logger.info(
                f"Finished {TASK_RESOLVE_LLM_CONFIG} "
                f"config_id={state.config.get('id')} "
                f"configs={len(state.configs)} "
                f"active={len(state.active_configs)}"
            )
        return state

    def _resolve_pass(self) -> Optional[ResolvedConfigState]:
        """
        One pass over stored data. Returns None when the list had to be
        seeded, so the caller runs again on the seeded data.
        """
        raw_configs = self.store.get(LLM_CONFIGS_KEY)
        selected_id = self.store.get(ACTIVE_LLM_CONFIG_ID_KEY)

        try:
            configs = _parse_configs(raw_configs)
        except ValueError as e:
            logger.warning(f"Unreadable stored LLM configs: {e}")
            return ResolvedConfigState(
                error=f"Failed to load LLM configs: {e}",
            )

        if not configs:
            default_config = build_default_llm_config()
            logger.warning(
                "No stored LLM configs; seeding system default "
                f"config_id={default_config['id']}"
            )
            write_json(
                self.store, LLM_CONFIGS_KEY, [default_config], origin=self
            )
            self.store.set(
                ACTIVE_LLM_CONFIG_ID_KEY, default_config["id"], origin=self
            )
            return None

        changed = False
        system_configs = [c for c in configs if c.get("isSystem")]
        if not system_configs:
            default_config = build_default_llm_config()
            logger.warning(
                "System default LLM config missing; restoring "
                f"config_id={default_config['id']}"
            )
            configs.insert(0, default_config)
            system_config = default_config
            changed = True
        else:
            system_config = system_configs[0]
            for extra in system_configs[1:]:
                logger.warning(
                    "Duplicate system LLM config; clearing isSystem "
                    f"config_id={extra.get('id')}"
                )
                extra["isSystem"] = False
                changed = True

        if not system_config.get("isActive"):
            logger.warning(
                "System default LLM config was disabled; re-enabling "
                f"config_id={system_config.get('id')}"
            )
            system_config["isActive"] = True
            changed = True

        if changed:
            write_json(self.store, LLM_CONFIGS_KEY, configs, origin=self)

        active_configs = [c for c in configs if c.get("isActive")]

        current = None
        if selected_id:
            current = _find_config(configs, selected_id)
            if current is not None and not current.get("isActive"):
                logger.warning(
                    "Selected LLM config is not active "
                    f"config_id={selected_id} name={current.get('name')}"
                )
                current = None
        if current is None and active_configs:
            current = active_configs[0]
        if current is None and configs:
            current = configs[0]

        if current is None:
            return ResolvedConfigState(
                configs=configs,
                active_configs=active_configs,
                error="No valid LLM config found.",
            )

        if current.get("id") != selected_id:
            logger.info(
                "Selecting LLM config "
                f"config_id={current.get('id')} previous={selected_id}"
            )
            self.store.set(
                ACTIVE_LLM_CONFIG_ID_KEY, current.get("id"), origin=self
            )

        return ResolvedConfigState(
            configs=configs,
            active_configs=active_configs,
            config=current,
            error=None,
        )

    def set_active_config(self, config_id: str) -> bool:
        """
        Select config_id as current. Unknown ids are logged and ignored.
        Inactive configs may be selected (with a warning); the next
        resolution falls back to an active one.
        """
        state = self.state
        target = _find_config(state.configs, config_id)
        if target is None:
            logger.error(f"LLM config not found config_id={config_id}")
            return False
        if not target.get("isActive"):
            logger.warning(
                "Selecting inactive LLM config "
                f"config_id={config_id} name={target.get('name')}"
            )
        self.store.set(ACTIVE_LLM_CONFIG_ID_KEY, config_id, origin=self)
        self._state = ResolvedConfigState(
            configs=state.configs,
            active_configs=state.active_configs,
            config=target,
            error=None,
        )
        logger.info(f"Selected LLM config config_id={config_id}")
        self._emit(self._state)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register listener for new snapshots. Returns an unsubscribe
        callable.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def refresh(self) -> ResolvedConfigState:
        """Re-resolve and push the snapshot to listeners."""
        state = self.resolve()
        self._emit(state)
        return state

    def start(self) -> ResolvedConfigState:
        """Resolve once and begin watching for change notifications."""
        if not self._started:
            storage_changed.connect(self._on_storage_changed)
            llm_config_updated.connect(self._on_config_updated)
            self._started = True
        return self.refresh()

    def stop(self) -> None:
        if self._started:
            storage_changed.disconnect(self._on_storage_changed)
            llm_config_updated.disconnect(self._on_config_updated)
            self._started = False

    def _on_storage_changed(
        self, sender, store=None, key=None, origin=None, **kwargs
    ):
        if origin is self or key not in LLM_CONFIG_STORAGE_KEYS:
            return
        if store is not None and store != self.store:
            return
        logger.debug(f"Storage change detected key={key}")
        self.refresh()

    def _on_config_updated(self, sender, store=None, **kwargs):
        if store is not None and store != self.store:
            return
        logger.debug("llm_config_updated received")
        self.refresh()

    def _emit(self, state: ResolvedConfigState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning(
                    f"LLM config listener failed: {e}", exc_info=True
                )


def _parse_configs(raw: Optional[str]) -> List[Dict[str, Any]]:
    """Absent or blank -> []. Raises ValueError for anything unusable."""
    if raw is None or not raw.strip():
        return []
    parsed = json.loads(raw)
    if parsed is None:
        return []
    if not isinstance(parsed, list):
        raise ValueError("stored LLM configs must be a JSON list")
    if any(not isinstance(item, dict) for item in parsed):
        raise ValueError("every stored LLM config must be a JSON object")
    return parsed


def _find_config(
    configs: List[Dict[str, Any]], config_id: Optional[str]
) -> Optional[Dict[str, Any]]:
    if not config_id:
        return None
    for config in configs:
        if config.get("id") == config_id:
            return config
    return None


def resolve_active_llm_config(
    store: Optional[KeyValueStore] = None,
) -> ResolvedConfigState:
    """One-shot resolution against store (default store when None)."""
    return ActiveLLMConfigResolver(store).resolve()
