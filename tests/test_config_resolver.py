"""
Tests for services.config_resolver: seeding, healing, selection,
idempotence, parse errors and change notifications.
"""
import json

import pytest

from mathtutor_console.adapters.django.services.config_resolver import (
    ActiveLLMConfigResolver,
    resolve_active_llm_config,
)
from mathtutor_console.adapters.django.services.default_config import (
    build_default_llm_config,
)
from mathtutor_console.adapters.django.services.storage import (
    InMemoryKeyValueStore,
    write_json,
)
from mathtutor_console.adapters.django.signals import llm_config_updated
from mathtutor_console.constants import (
    ACTIVE_LLM_CONFIG_ID_KEY,
    LLM_CONFIGS_KEY,
)


class RecordingStore(InMemoryKeyValueStore):
    """In-memory store that records every write."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    def _set(self, key, value):
        self.writes.append(key)
        super()._set(key, value)


def _config(config_id, name=None, active=True, system=False):
    return {
        "id": config_id,
        "name": name or config_id,
        "provider": "gemini",
        "model": "gemini-2.5-pro",
        "isActive": active,
        "isSystem": system,
    }


def _stored(store):
    return json.loads(store.get(LLM_CONFIGS_KEY))


@pytest.mark.unit
class TestResolverSeeding:
    def test_empty_storage_seeds_single_system_config(self):
        store = RecordingStore()
        state = resolve_active_llm_config(store)

        assert state.error is None
        assert len(state.configs) == 1
        config = state.configs[0]
        assert config["isSystem"] is True
        assert config["isActive"] is True
        assert state.config["id"] == config["id"]
        assert state.active_configs == [config]
        assert _stored(store)[0]["id"] == config["id"]
        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == config["id"]

    def test_blank_and_null_values_count_as_empty(self):
        for raw in ("", "   ", "null", "[]"):
            store = InMemoryKeyValueStore({LLM_CONFIGS_KEY: raw})
            state = resolve_active_llm_config(store)
            assert state.error is None
            assert len(state.configs) == 1
            assert state.configs[0]["isSystem"] is True

    def test_seeded_config_carries_default_invocation_values(self):
        state = resolve_active_llm_config(InMemoryKeyValueStore())
        config = state.config
        assert config["provider"] == "gemini"
        assert config["model"] == "gemini-2.5-pro"
        assert config["temperature"] == 0
        assert config["maxOutputTokens"] == 8192
        assert config["thinkingBudget"] == 1800
        assert config["responseMimeType"] == "application/json"
        assert config["systemPrompt"]


@pytest.mark.unit
class TestResolverHealing:
    def test_missing_system_entry_is_prepended(self):
        custom = [_config("a"), _config("b", active=False)]
        store = InMemoryKeyValueStore()
        write_json(store, LLM_CONFIGS_KEY, custom)

        state = resolve_active_llm_config(store)

        assert state.error is None
        assert [c["id"] for c in state.configs[1:]] == ["a", "b"]
        assert state.configs[0]["isSystem"] is True
        assert state.configs[0]["isActive"] is True
        stored = _stored(store)
        assert len(stored) == 3
        assert stored[0]["isSystem"] is True
        assert [c["id"] for c in stored[1:]] == ["a", "b"]

    def test_disabled_system_entry_is_reactivated_and_persisted(self):
        system = _config("sys", active=False, system=True)
        store = InMemoryKeyValueStore()
        write_json(store, LLM_CONFIGS_KEY, [system, _config("a")])

        state = resolve_active_llm_config(store)

        assert state.configs[0]["isActive"] is True
        assert _stored(store)[0]["isActive"] is True
        assert [c["id"] for c in state.active_configs] == ["sys", "a"]

    def test_duplicate_system_entries_keep_only_the_first(self):
        store = InMemoryKeyValueStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [_config("s1", system=True), _config("s2", system=True)],
        )

        state = resolve_active_llm_config(store)

        flags = [c["isSystem"] for c in state.configs]
        assert flags == [True, False]
        assert [c["isSystem"] for c in _stored(store)] == [True, False]


@pytest.mark.unit
class TestResolverSelection:
    def test_selected_active_config_wins(self):
        store = InMemoryKeyValueStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [_config("sys", system=True), _config("a")],
        )
        store.set(ACTIVE_LLM_CONFIG_ID_KEY, "a")

        state = resolve_active_llm_config(store)

        assert state.config["id"] == "a"
        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == "a"

    def test_inactive_selection_falls_back_to_first_active(self):
        store = InMemoryKeyValueStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [
                _config("off", active=False),
                _config("sys", system=True),
                _config("a"),
            ],
        )
        store.set(ACTIVE_LLM_CONFIG_ID_KEY, "off")

        state = resolve_active_llm_config(store)

        assert state.config["id"] == "sys"
        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == "sys"

    def test_stale_selection_is_replaced(self):
        store = InMemoryKeyValueStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [_config("sys", system=True), _config("a")],
        )
        store.set(ACTIVE_LLM_CONFIG_ID_KEY, "deleted-id")

        state = resolve_active_llm_config(store)

        assert state.config["id"] == "sys"
        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == "sys"

    def test_missing_selection_is_written(self):
        store = InMemoryKeyValueStore()
        write_json(store, LLM_CONFIGS_KEY, [_config("sys", system=True)])

        resolve_active_llm_config(store)

        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == "sys"


@pytest.mark.unit
class TestResolverIdempotence:
    def test_second_run_is_identical_and_writes_nothing(self):
        store = RecordingStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [_config("a"), _config("sys", active=False, system=True)],
        )
        store.writes.clear()

        first = resolve_active_llm_config(store)
        writes_after_first = list(store.writes)
        second = resolve_active_llm_config(store)

        assert writes_after_first
        assert store.writes == writes_after_first
        assert first == second

    def test_seeded_store_is_stable(self):
        store = RecordingStore()
        first = resolve_active_llm_config(store)
        store.writes.clear()
        second = resolve_active_llm_config(store)
        assert store.writes == []
        assert first.config["id"] == second.config["id"]


@pytest.mark.unit
class TestResolverErrors:
    @pytest.mark.parametrize(
        "raw",
        ["{not json", '{"id": "x"}', '["not-an-object"]'],
    )
    def test_unreadable_list_yields_error_state(self, raw):
        store = RecordingStore({LLM_CONFIGS_KEY: raw})

        state = resolve_active_llm_config(store)

        assert state.error is not None
        assert state.error.startswith("Failed to load LLM configs")
        assert state.config is None
        assert state.configs == []
        assert store.writes == []
        assert store.get(LLM_CONFIGS_KEY) == raw

    def test_to_dict_has_four_fields(self):
        state = resolve_active_llm_config(InMemoryKeyValueStore())
        assert set(state.to_dict()) == {
            "configs",
            "active_configs",
            "config",
            "error",
        }


@pytest.mark.unit
class TestSetActiveConfig:
    def test_unknown_id_is_ignored(self):
        store = InMemoryKeyValueStore()
        resolver = ActiveLLMConfigResolver(store)
        before = resolver.resolve()
        selected = store.get(ACTIVE_LLM_CONFIG_ID_KEY)

        assert resolver.set_active_config("missing") is False
        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == selected
        assert resolver.state == before

    def test_known_id_is_persisted_and_emitted(self):
        store = InMemoryKeyValueStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [_config("sys", system=True), _config("a")],
        )
        resolver = ActiveLLMConfigResolver(store)
        seen = []
        resolver.subscribe(seen.append)

        assert resolver.set_active_config("a") is True
        assert store.get(ACTIVE_LLM_CONFIG_ID_KEY) == "a"
        assert resolver.state.config["id"] == "a"
        assert seen[-1].config["id"] == "a"

    def test_inactive_selection_is_replaced_on_next_resolve(self):
        store = InMemoryKeyValueStore()
        write_json(
            store,
            LLM_CONFIGS_KEY,
            [_config("sys", system=True), _config("off", active=False)],
        )
        resolver = ActiveLLMConfigResolver(store)

        assert resolver.set_active_config("off") is True
        assert resolver.resolve().config["id"] == "sys"


@pytest.mark.unit
class TestResolverNotifications:
    def test_external_write_triggers_refresh(self):
        store = InMemoryKeyValueStore()
        resolver = ActiveLLMConfigResolver(store)
        seen = []
        resolver.subscribe(seen.append)
        resolver.start()
        try:
            configs = resolver.state.configs + [_config("a")]
            write_json(store, LLM_CONFIGS_KEY, configs)
            store.set(ACTIVE_LLM_CONFIG_ID_KEY, "a")
        finally:
            resolver.stop()

        assert seen[-1].config["id"] == "a"
        assert len(seen[-1].configs) == 2

    def test_other_keys_and_other_stores_are_ignored(self):
        store = InMemoryKeyValueStore()
        other = InMemoryKeyValueStore()
        resolver = ActiveLLMConfigResolver(store)
        resolver.start()
        seen = []
        resolver.subscribe(seen.append)
        try:
            store.set("math_tutor_problems", "[]")
            write_json(other, LLM_CONFIGS_KEY, [_config("x")])
        finally:
            resolver.stop()
        assert seen == []

    def test_config_updated_signal_triggers_refresh(self):
        store = InMemoryKeyValueStore()
        resolver = ActiveLLMConfigResolver(store)
        resolver.start()
        seen = []
        resolver.subscribe(seen.append)
        try:
            llm_config_updated.send(sender=None, store=store, config=None)
        finally:
            resolver.stop()
        assert len(seen) == 1
        assert seen[0].error is None

    def test_stopped_resolver_does_not_refresh(self):
        store = InMemoryKeyValueStore()
        resolver = ActiveLLMConfigResolver(store)
        resolver.start()
        resolver.stop()
        seen = []
        resolver.subscribe(seen.append)
        write_json(store, LLM_CONFIGS_KEY, [build_default_llm_config()])
        assert seen == []

    def test_unsubscribe_and_failing_listener(self):
        store = InMemoryKeyValueStore()
        resolver = ActiveLLMConfigResolver(store)
        seen = []

        def broken(state):
            raise RuntimeError("boom")

        resolver.subscribe(broken)
        unsubscribe = resolver.subscribe(seen.append)
        resolver.refresh()
        unsubscribe()
        resolver.refresh()

        assert len(seen) == 1
