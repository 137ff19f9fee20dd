"""
Custom system prompt and its version history.

The current prompt is a plain string under math_tutor_custom_prompt; every
save also pushes a version (newest first) onto math_tutor_prompt_versions,
capped at MATHTUTOR_CONSOLE_MAX_PROMPT_VERSIONS.
"""
import logging
from typing import Any, Dict, List, Optional

from mathtutor_console.adapters.django.conf import get_max_prompt_versions
from mathtutor_console.adapters.django.services.default_config import (
    SYSTEM_PROMPT_BASE,
    new_id,
    now_timestamp,
)
from mathtutor_console.adapters.django.services.storage import (
    KeyValueStore,
    read_json_list,
    write_json,
)
from mathtutor_console.constants import CUSTOM_PROMPT_KEY, PROMPT_VERSIONS_KEY

logger = logging.getLogger(__name__)


class PromptVersionNotFound(LookupError):
    """No prompt version with the given id."""


def get_custom_prompt(store: KeyValueStore) -> Dict[str, Any]:
    """Current prompt; falls back to the base prompt when none saved."""
    prompt = store.get(CUSTOM_PROMPT_KEY)
    if prompt and prompt.strip():
        return {"prompt": prompt, "is_custom": True}
    return {"prompt": SYSTEM_PROMPT_BASE, "is_custom": False}


def list_prompt_versions(store: KeyValueStore) -> List[Dict[str, Any]]:
    return [
        v
        for v in read_json_list(store, PROMPT_VERSIONS_KEY)
        if isinstance(v, dict)
    ]


def save_custom_prompt(
    store: KeyValueStore, prompt: str, note: Optional[str] = None
) -> Dict[str, Any]:
    """Store prompt as current and record it as a new version."""
    prompt = (prompt or "").strip()
    if not prompt:
        raise ValueError("Prompt cannot be empty.")
    version = {
        "id": new_id(),
        "prompt": prompt,
        "note": (note or "").strip(),
        "createdAt": now_timestamp(),
    }
    versions = [version] + list_prompt_versions(store)
    versions = versions[: get_max_prompt_versions()]
    store.set(CUSTOM_PROMPT_KEY, prompt)
    write_json(store, PROMPT_VERSIONS_KEY, versions)
    logger.info(
        f"Saved custom prompt version_id={version['id']} "
        f"versions={len(versions)}"
    )
    return version


def restore_prompt_version(
    store: KeyValueStore, version_id: str
) -> Dict[str, Any]:
    """Make a stored version the current prompt (history is unchanged)."""
    for version in list_prompt_versions(store):
        if version.get("id") == version_id:
            store.set(CUSTOM_PROMPT_KEY, version.get("prompt") or "")
            logger.info(f"Restored prompt version_id={version_id}")
            return version
    raise PromptVersionNotFound(version_id)


def delete_prompt_version(store: KeyValueStore, version_id: str) -> None:
    versions = list_prompt_versions(store)
    remaining = [v for v in versions if v.get("id") != version_id]
    if len(remaining) == len(versions):
        raise PromptVersionNotFound(version_id)
    write_json(store, PROMPT_VERSIONS_KEY, remaining)
    logger.info(f"Deleted prompt version_id={version_id}")
