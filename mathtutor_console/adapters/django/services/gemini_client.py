"""
Server-side client for the Gemini generateContent REST endpoint.

The API key stays on the server; callers pass model, system prompt, user
parts and generation config, and receive the vendor JSON unchanged.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from mathtutor_console.adapters.django.conf import (
    get_gemini_api_base,
    get_request_timeout,
)
from mathtutor_console.constants import ERROR_DETAILS_MAX_CHARS

logger = logging.getLogger(__name__)


class GeminiAPIError(Exception):
    """Non-2xx response from the Gemini API."""

    def __init__(self, status_code: int, reason: str = "", details: str = ""):
        self.status_code = status_code
        self.reason = reason or ""
        self.details = truncate_details(details)
        super().__init__(self.error)

    @property
    def error(self) -> str:
        return f"Gemini API error: {self.status_code} {self.reason}".strip()


def truncate_details(text: Optional[str]) -> str:
    """Vendor error text cut to ERROR_DETAILS_MAX_CHARS."""
    return (text or "")[:ERROR_DETAILS_MAX_CHARS]


def build_request_body(
    system_prompt: str,
    user_parts: List[Dict[str, Any]],
    generation_config: Dict[str, Any],
) -> Dict[str, Any]:
    return {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "contents": [{"role": "user", "parts": user_parts}],
        "generationConfig": generation_config,
    }


def generate_content(
    model: str,
    system_prompt: str,
    user_parts: List[Dict[str, Any]],
    generation_config: Dict[str, Any],
    api_key: str,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Call models/{model}:generateContent and return the decoded JSON body.

    Raises GeminiAPIError for non-2xx responses and httpx.HTTPError for
    transport failures. No retries.
    """
    url = f"{get_gemini_api_base()}/models/{model}:generateContent"
    body = build_request_body(system_prompt, user_parts, generation_config)
    logger.info(f"Starting gemini_generate_content model={model}")
    response = httpx.post(
        url,
        params={"key": api_key},
        headers={"Content-Type": "application/json"},
        json=body,
        timeout=timeout if timeout is not None else get_request_timeout(),
    )
    if not response.is_success:
        logger.error(
            f"Gemini API error model={model} "
            f"status={response.status_code} "
            f"details={truncate_details(response.text)}"
        )
        raise GeminiAPIError(
            response.status_code,
            response.reason_phrase,
            response.text,
        )
    data = response.json()
    logger.info(f"Finished gemini_generate_content model={model}")
    return data
