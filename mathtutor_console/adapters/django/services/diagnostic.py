"""
Diagnostic chat: send a student reply to the LLM and return the tutor's
transcript message.

The active LLM config decides provider, model and prompt. Gemini configs
go through the generateContent client; other providers go through
litellm.completion(). run_diagnostic() never raises: failures come back
as an isError transcript message.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import litellm

from mathtutor_console.adapters.django.conf import (
    get_gemini_api_key,
    get_request_timeout,
)
from mathtutor_console.adapters.django.services.config_resolver import (
    ActiveLLMConfigResolver,
)
from mathtutor_console.adapters.django.services.default_config import (
    SYSTEM_PROMPT_BASE,
    default_response_schema,
    new_id,
    now_timestamp,
)
from mathtutor_console.adapters.django.services.diagnostic_parsing import (
    extract_response_text,
    parse_json_loose,
    validate_diagnostic,
)
from mathtutor_console.adapters.django.services.gemini_client import (
    GeminiAPIError,
    generate_content,
)
from mathtutor_console.adapters.django.services.litellm_params import (
    PROVIDER_SETTINGS_KEYS,
    build_litellm_params_from_config,
    normalize_provider,
)
from mathtutor_console.adapters.django.services.problems import (
    ensure_default_problem,
    get_problem,
)
from mathtutor_console.adapters.django.services.settings_store import (
    get_api_key,
)
from mathtutor_console.adapters.django.services.storage import KeyValueStore
from mathtutor_console.constants import (
    CONTEXT_MESSAGE_LIMIT,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_RESPONSE_MIME_TYPE,
    DEFAULT_TEMPERATURE,
    DEFAULT_THINKING_BUDGET,
)

logger = logging.getLogger(__name__)

TASK_DIAGNOSTIC = "diagnostic_chat"

JSON_ONLY_SUFFIX = (
    "\n\n---\n"
    "Output **exactly one plain JSON object** matching the format above. "
    "Do not use code fences (```), markdown, comments, extra explanation "
    "or any leading or trailing text."
)


def build_context(history: Optional[List[Dict[str, Any]]]) -> str:
    """Last CONTEXT_MESSAGE_LIMIT messages as Student/Teacher lines."""
    lines = []
    for msg in (history or [])[-CONTEXT_MESSAGE_LIMIT:]:
        if not isinstance(msg, dict):
            continue
        content = msg.get("content") or ""
        if msg.get("type") == "student":
            lines.append(f"Student: {content}")
        elif msg.get("type") == "ai" and not msg.get("isError"):
            lines.append(f"Teacher: {content}")
    return "\n".join(lines)


def split_data_url(data_url: str) -> Optional[Tuple[str, str]]:
    """("image/png", "<base64>") from a data URL; None if not one."""
    if not isinstance(data_url, str) or not data_url.startswith("data:"):
        return None
    header, sep, data = data_url.partition(",")
    if not sep or not data:
        return None
    mime_type = header[len("data:"):].split(";")[0] or "image/png"
    return mime_type, data


def build_user_text(
    problem: Dict[str, Any], user_message: str, context: str
) -> str:
    content = problem.get("content") or ""
    has_image = bool(split_data_url(problem.get("imageUrl")))
    has_explanation_image = bool(
        split_data_url(problem.get("explanationImageUrl"))
    )
    text = "### Actual input data\n"
    if has_image and has_explanation_image:
        text += f"- Problem: see the first image. {content}\n"
        text += "- Explanation: see the second image.\n"
    elif has_image:
        text += f"- Problem: see the image above. {content}\n"
    elif has_explanation_image:
        text += f"- Problem: {content}\n"
        text += "- Explanation: see the image above.\n"
    else:
        text += f"- Problem: {content}\n"
    if problem.get("explanationText"):
        text += f"- Explanation (text): {problem['explanationText']}\n"
    text += f"- Student response: {user_message}\n"
    text += f"- Context: {context}"
    return text


def build_user_parts(
    problem: Dict[str, Any], user_message: str, context: str
) -> List[Dict[str, Any]]:
    """Inline image parts (problem, then explanation) and the text part."""
    parts = []
    for key in ("imageUrl", "explanationImageUrl"):
        split = split_data_url(problem.get(key))
        if split:
            mime_type, data = split
            parts.append({"inlineData": {"mimeType": mime_type, "data": data}})
    parts.append({"text": build_user_text(problem, user_message, context)})
    return parts


def build_generation_config(config: Dict[str, Any]) -> Dict[str, Any]:
    mime_type = config.get("responseMimeType") or DEFAULT_RESPONSE_MIME_TYPE
    generation_config = {
        "temperature": _value(config, "temperature", DEFAULT_TEMPERATURE),
        "maxOutputTokens": _value(
            config, "maxOutputTokens", DEFAULT_MAX_OUTPUT_TOKENS
        ),
        "responseMimeType": mime_type,
    }
    if mime_type == "application/json":
        generation_config["responseSchema"] = (
            config.get("outputSchema") or default_response_schema()
        )
    generation_config["thinkingConfig"] = {
        "thinkingBudget": _value(
            config, "thinkingBudget", DEFAULT_THINKING_BUDGET
        ),
    }
    return generation_config


def _value(config: Dict[str, Any], key: str, default: Any) -> Any:
    value = config.get(key)
    return default if value is None else value


def build_system_prompt(config: Dict[str, Any]) -> str:
    prompt = (config.get("systemPrompt") or "").strip() or SYSTEM_PROMPT_BASE
    return prompt + JSON_ONLY_SUFFIX


def _choose_config(
    resolver: ActiveLLMConfigResolver, config_id: Optional[str]
) -> Dict[str, Any]:
    state = resolver.resolve()
    if config_id:
        for config in state.active_configs:
            if config.get("id") == config_id:
                return config
        raise ValueError(f"LLM config is not active: {config_id}")
    if state.config is None:
        raise ValueError(state.error or "No valid LLM config found.")
    return state.config


def _choose_problem(
    store: KeyValueStore, problem_id: Optional[str]
) -> Dict[str, Any]:
    if problem_id:
        return get_problem(store, problem_id)
    return ensure_default_problem(store)[0]


def _call_gemini(
    store: KeyValueStore,
    config: Dict[str, Any],
    problem: Dict[str, Any],
    message: str,
    context: str,
) -> str:
    api_key = get_gemini_api_key() or get_api_key(store, "geminiApiKey")
    if not api_key:
        raise ValueError("Gemini API key is not configured.")
    data = generate_content(
        model=config.get("model") or DEFAULT_MODEL,
        system_prompt=build_system_prompt(config),
        user_parts=build_user_parts(problem, message, context),
        generation_config=build_generation_config(config),
        api_key=api_key,
    )
    return extract_response_text(data)


def _call_litellm(
    store: KeyValueStore,
    config: Dict[str, Any],
    problem: Dict[str, Any],
    message: str,
    context: str,
) -> str:
    provider = normalize_provider(config.get("provider"))
    settings_key = PROVIDER_SETTINGS_KEYS.get(provider)
    api_key = get_api_key(store, settings_key) if settings_key else ""
    params = build_litellm_params_from_config(config, api_key)

    content = []
    for key in ("imageUrl", "explanationImageUrl"):
        if split_data_url(problem.get(key)):
            content.append(
                {"type": "image_url", "image_url": {"url": problem[key]}}
            )
    content.append(
        {"type": "text", "text": build_user_text(problem, message, context)}
    )
    params["messages"] = [
        {"role": "system", "content": build_system_prompt(config)},
        {"role": "user", "content": content},
    ]
    params["timeout"] = get_request_timeout()

    response = litellm.completion(**params)
    if response is None:
        raise ValueError("LLM service returned None response")
    choice = (response.choices or [None])[0]
    if not choice or not getattr(choice, "message", None):
        raise ValueError("LLM returned empty response")
    text = getattr(choice.message, "content", None) or ""
    if not str(text).strip():
        raise ValueError("LLM returned empty response")
    return str(text).strip()


def error_message(error: str, debug: Optional[str] = None) -> Dict[str, Any]:
    msg = {
        "id": new_id(),
        "type": "ai",
        "content": f"An error occurred: {error}",
        "timestamp": now_timestamp(),
        "isError": True,
    }
    if debug:
        msg["debug"] = debug
    return msg


def run_diagnostic(
    store: KeyValueStore,
    problem_id: Optional[str],
    message: str,
    history: Optional[List[Dict[str, Any]]] = None,
    config_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Diagnose message against the problem and return the AI message:
    {id, type, content (next question), diagnostic, timestamp}.
    """
    logger.info(
        f"Starting {TASK_DIAGNOSTIC} problem_id={problem_id} "
        f"config_id={config_id}"
    )
    raw_text = None
    try:
        config = _choose_config(ActiveLLMConfigResolver(store), config_id)
        problem = _choose_problem(store, problem_id)
        context = build_context(history)
        if normalize_provider(config.get("provider")) == "gemini":
            raw_text = _call_gemini(store, config, problem, message, context)
        else:
            raw_text = _call_litellm(
                store, config, problem, message, context
            )
        diagnostic = validate_diagnostic(parse_json_loose(raw_text))
    except GeminiAPIError as e:
        logger.error(f"Failed {TASK_DIAGNOSTIC} error={e.error}")
        return error_message(e.error, e.details)
    except LookupError as e:
        logger.warning(f"Failed {TASK_DIAGNOSTIC} problem not found: {e}")
        return error_message(f"Problem not found: {e}")
    except Exception as e:
        logger.exception(f"Failed {TASK_DIAGNOSTIC}")
        return error_message(str(e) or e.__class__.__name__, raw_text)

    logger.info(
        f"Finished {TASK_DIAGNOSTIC} "
        f"stage={diagnostic.get('recommended_stage')} "
        f"feedback_completed={diagnostic.get('feedback_completed')}"
    )
    return {
        "id": new_id(),
        "type": "ai",
        "content": diagnostic["next_question"],
        "diagnostic": diagnostic,
        "timestamp": now_timestamp(),
    }
