"""
Recover and validate the diagnostic JSON returned by the model.

Models sometimes wrap the object in code fences, add prose around it, put
raw newlines inside strings, use smart quotes or leave trailing commas.
parse_json_loose() tries progressively more lenient clean-ups before
giving up.
"""
import base64
import binascii
import json
import re
from typing import Any, Dict

from mathtutor_console.adapters.django.services.default_config import (
    ERROR_PATTERNS,
    LEVELS,
    STAGES,
)

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_FENCED_RE = re.compile(r"```\s*([\s\S]*?)\s*```")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_SMART_DOUBLE_RE = re.compile("[“”]")
_SMART_SINGLE_RE = re.compile("[‘’]")


def escape_newlines_inside_strings(src: str) -> str:
    """Escape raw CR/LF found inside JSON string literals (CRLF -> \\n)."""
    out = []
    in_string = False
    escaped = False
    i = 0
    n = len(src)
    while i < n:
        ch = src[i]
        if not in_string:
            if ch == '"':
                in_string = True
            out.append(ch)
        elif escaped:
            out.append(ch)
            escaped = False
        elif ch == "\\":
            out.append(ch)
            escaped = True
        elif ch == '"':
            in_string = False
            out.append(ch)
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            if i + 1 < n and src[i + 1] == "\n":
                i += 1
            out.append("\\n")
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _try_parse(src: str):
    return json.loads(src.strip())


def _candidates(text: str):
    yield escape_newlines_inside_strings(text)
    yield text

    fenced = _FENCED_JSON_RE.search(text) or _FENCED_RE.search(text)
    if fenced and fenced.group(1):
        yield escape_newlines_inside_strings(fenced.group(1))
        yield fenced.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        candidate = text[start:end + 1]
        yield escape_newlines_inside_strings(candidate)
        yield candidate

    normalized = _SMART_SINGLE_RE.sub("'", _SMART_DOUBLE_RE.sub('"', text))
    yield escape_newlines_inside_strings(normalized)
    yield normalized

    no_trailing = _TRAILING_COMMA_RE.sub(r"\1", normalized)
    yield escape_newlines_inside_strings(no_trailing)
    yield no_trailing


def parse_json_loose(text: str) -> Any:
    """
    Parse model output as JSON, tolerating common formatting damage.
    Raises ValueError when nothing parses.
    """
    if not isinstance(text, str):
        raise ValueError("Response text must be a string.")
    for candidate in _candidates(text):
        try:
            return _try_parse(candidate)
        except ValueError:
            continue

    # Last resort: escape every newline and tab.
    normalized = _SMART_SINGLE_RE.sub("'", _SMART_DOUBLE_RE.sub('"', text))
    aggressive = _TRAILING_COMMA_RE.sub(r"\1", normalized)
    aggressive = re.sub(r"[\r\n]+", r"\\n", aggressive).replace("\t", "\\t")
    return _try_parse(aggressive)


def _check_enum(value: Any, allowed, name: str) -> None:
    if not isinstance(value, str) or value not in allowed:
        raise ValueError(f"Invalid {name} value: {value!r}")


def validate_diagnostic(obj: Any) -> Dict[str, Any]:
    """Check field presence, enum values and types. Returns obj."""
    if not obj or not isinstance(obj, dict):
        raise ValueError("Diagnostic object is empty.")
    diagnosis = obj.get("diagnosis")
    if not isinstance(diagnosis, dict):
        raise ValueError("Missing diagnosis field.")
    _check_enum(
        diagnosis.get("problem_understanding"),
        LEVELS,
        "problem_understanding",
    )
    _check_enum(
        diagnosis.get("concept_knowledge"), LEVELS, "concept_knowledge"
    )
    _check_enum(
        diagnosis.get("error_pattern"), ERROR_PATTERNS, "error_pattern"
    )
    _check_enum(
        diagnosis.get("confidence_level"), LEVELS, "confidence_level"
    )
    _check_enum(obj.get("recommended_stage"), STAGES, "recommended_stage")
    if not isinstance(obj.get("stage_reason"), str):
        raise ValueError("stage_reason must be a string.")
    if not isinstance(obj.get("next_question"), str):
        raise ValueError("next_question must be a string.")
    if not isinstance(obj.get("feedback_completed"), bool):
        raise ValueError("feedback_completed must be a boolean.")
    return obj


def extract_response_text(data: Dict[str, Any]) -> str:
    """
    Pull the answer text out of a generateContent response.

    Raises ValueError when the prompt was blocked or no text is found.
    """
    data = data or {}
    blocked = (data.get("promptFeedback") or {}).get("blockReason")
    if blocked:
        raise ValueError(f"Blocked by safety policy: {blocked}")

    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    parts = ((first or {}).get("content") or {}).get("parts") or []

    for part in parts:
        text = (part or {}).get("text")
        if isinstance(text, str) and text.strip():
            return text.strip()

    for part in parts:
        encoded = ((part or {}).get("inlineData") or {}).get("data")
        if not encoded:
            continue
        try:
            decoded = base64.b64decode(encoded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError):
            continue
        if decoded.strip():
            return decoded.strip()

    finish = (first or {}).get("finishReason")
    hint = f" (finishReason: {finish})" if finish else ""
    raise ValueError(f"No JSON body found in the Gemini response.{hint}")
