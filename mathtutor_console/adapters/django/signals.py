"""
Change notifications for the console's persisted state.

storage_changed: sent by a KeyValueStore after every set/remove, with
    store, key and origin (the writer, or None). Plays the role of the
    browser's cross-tab "storage" event: listeners should ignore changes
    whose origin is themselves.
llm_config_updated: sent after an admin write to the LLM config list, with
    config (the written record, or None). Plays the role of the in-tab
    "configuration updated" event.
"""
from django.dispatch import Signal

storage_changed = Signal()
llm_config_updated = Signal()
