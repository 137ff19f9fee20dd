"""
Tests for the diagnostic chat: request building, provider routing and
error messages.
"""
import json
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest
from django.test import override_settings

from mathtutor_console.adapters.django.services import diagnostic as diag
from mathtutor_console.adapters.django.services.gemini_client import (
    GeminiAPIError,
)
from mathtutor_console.adapters.django.services.llm_config_store import (
    activate_config,
    create_config,
)
from mathtutor_console.adapters.django.services.problems import (
    create_problem,
)
from mathtutor_console.adapters.django.services.settings_store import (
    save_settings,
)

DIAGNOSTIC = {
    "diagnosis": {
        "problem_understanding": "high",
        "concept_knowledge": "medium",
        "error_pattern": "calculation_error",
        "confidence_level": "high",
    },
    "recommended_stage": "3",
    "stage_reason": "Arithmetic slip while factoring.",
    "next_question": "Shall we check the calculation again?",
    "feedback_completed": False,
}
GEMINI_RESPONSE = {
    "candidates": [
        {"content": {"parts": [{"text": json.dumps(DIAGNOSTIC)}]}}
    ]
}
PNG_URL = "data:image/png;base64,iVBORw0KGgo="


def _completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.mark.unit
class TestRequestBuilding:
    def test_build_context_uses_last_ten_and_skips_errors(self):
        history = [
            {"type": "student", "content": f"s{i}"} for i in range(12)
        ]
        history.append({"type": "ai", "content": "oops", "isError": True})
        history.append({"type": "ai", "content": "hint"})
        lines = diag.build_context(history).split("\n")
        assert lines[0] == "Student: s4"
        assert lines[-1] == "Teacher: hint"
        assert "oops" not in " ".join(lines)
        assert len(lines) == 9

    def test_build_user_parts_images_first(self):
        problem = {
            "content": "[Image problem: a.png]",
            "imageUrl": PNG_URL,
            "explanationImageUrl": "data:image/jpeg;base64,/9j/",
            "explanationText": "Use ratios.",
        }
        parts = diag.build_user_parts(problem, "42", "")
        assert parts[0] == {
            "inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}
        }
        assert parts[1]["inlineData"]["mimeType"] == "image/jpeg"
        text = parts[2]["text"]
        assert "see the first image" in text
        assert "- Explanation (text): Use ratios." in text
        assert "- Student response: 42" in text

    def test_text_only_problem(self):
        parts = diag.build_user_parts({"content": "1+1?"}, "2", "ctx")
        assert len(parts) == 1
        assert "- Problem: 1+1?" in parts[0]["text"]
        assert parts[0]["text"].endswith("- Context: ctx")

    def test_generation_config_schema_only_for_json(self):
        config = {
            "temperature": 0.2,
            "maxOutputTokens": 100,
            "thinkingBudget": 0,
            "responseMimeType": "application/json",
            "outputSchema": {"type": "OBJECT"},
        }
        generation = diag.build_generation_config(config)
        assert generation["responseSchema"] == {"type": "OBJECT"}
        assert generation["thinkingConfig"] == {"thinkingBudget": 0}
        assert generation["temperature"] == 0.2

        config["responseMimeType"] = "text/plain"
        assert "responseSchema" not in diag.build_generation_config(config)

    def test_system_prompt_falls_back_and_adds_suffix(self):
        prompt = diag.build_system_prompt({"systemPrompt": ""})
        assert prompt.startswith(diag.SYSTEM_PROMPT_BASE)
        assert prompt.endswith(diag.JSON_ONLY_SUFFIX)


@pytest.mark.unit
class TestRunDiagnostic:
    @patch("mathtutor_console.adapters.django.services.diagnostic."
           "generate_content")
    def test_gemini_success(self, mock_generate, memory_store):
        mock_generate.return_value = GEMINI_RESPONSE
        problem = create_problem(
            memory_store, {"title": "t", "content": "x^2-5x+6=0"}
        )

        msg = diag.run_diagnostic(
            memory_store, problem["id"], "x = 2, 4", history=[]
        )

        assert msg["type"] == "ai"
        assert msg["content"] == DIAGNOSTIC["next_question"]
        assert msg["diagnostic"] == DIAGNOSTIC
        assert "isError" not in msg
        kwargs = mock_generate.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-pro"
        assert kwargs["api_key"] == "test-gemini-key"
        assert kwargs["system_prompt"].endswith(diag.JSON_ONLY_SUFFIX)

    @patch("mathtutor_console.adapters.django.services.diagnostic."
           "generate_content")
    def test_default_problem_is_used_without_id(
        self, mock_generate, memory_store
    ):
        mock_generate.return_value = GEMINI_RESPONSE
        msg = diag.run_diagnostic(memory_store, None, "13 m")
        assert msg["content"] == DIAGNOSTIC["next_question"]
        text = mock_generate.call_args.kwargs["user_parts"][-1]["text"]
        assert "snail" in text

    @patch("mathtutor_console.adapters.django.services.diagnostic."
           "generate_content")
    def test_vendor_error_becomes_error_message(
        self, mock_generate, memory_store
    ):
        mock_generate.side_effect = GeminiAPIError(429, "Too Many", "slow")
        msg = diag.run_diagnostic(memory_store, None, "hi")
        assert msg["isError"] is True
        assert "429" in msg["content"]
        assert msg["debug"] == "slow"

    @patch("mathtutor_console.adapters.django.services.diagnostic."
           "generate_content")
    def test_transport_and_parse_errors_never_raise(
        self, mock_generate, memory_store
    ):
        mock_generate.side_effect = httpx.ReadTimeout("timed out")
        assert diag.run_diagnostic(memory_store, None, "hi")["isError"]

        mock_generate.side_effect = None
        mock_generate.return_value = {
            "candidates": [{"content": {"parts": [{"text": "not json"}]}}]
        }
        msg = diag.run_diagnostic(memory_store, None, "hi")
        assert msg["isError"] is True
        assert msg["debug"] == "not json"

    def test_unknown_problem(self, memory_store):
        msg = diag.run_diagnostic(memory_store, "missing", "hi")
        assert msg["isError"] is True
        assert "Problem not found" in msg["content"]

    @override_settings(GEMINI_API_KEY="")
    def test_missing_gemini_key(self, memory_store):
        msg = diag.run_diagnostic(memory_store, None, "hi")
        assert msg["isError"] is True
        assert "API key" in msg["content"]

    @patch("mathtutor_console.adapters.django.services.diagnostic.litellm")
    def test_other_provider_goes_through_litellm(
        self, mock_litellm, memory_store
    ):
        mock_litellm.completion.return_value = _completion(
            "```json\n" + json.dumps(DIAGNOSTIC) + "\n```"
        )
        save_settings(memory_store, {"api": {"openaiApiKey": "sk-test"}})
        config = create_config(
            memory_store,
            {"name": "OpenAI", "provider": "openai", "model": "gpt-4o"},
        )
        activate_config(memory_store, config["id"])

        msg = diag.run_diagnostic(
            memory_store, None, "hi", config_id=config["id"]
        )

        assert msg["diagnostic"] == DIAGNOSTIC
        params = mock_litellm.completion.call_args.kwargs
        assert params["model"] == "gpt-4o"
        assert params["api_key"] == "sk-test"
        assert params["messages"][0]["role"] == "system"
        assert params["response_format"] == {"type": "json_object"}
        assert "num_retries" not in params

    def test_other_provider_without_key(self, memory_store):
        config = create_config(
            memory_store, {"name": "Claude", "provider": "anthropic"}
        )
        activate_config(memory_store, config["id"])
        msg = diag.run_diagnostic(
            memory_store, None, "hi", config_id=config["id"]
        )
        assert msg["isError"] is True
        assert "api_key" in msg["content"]

    def test_inactive_config_id_is_rejected(self, memory_store):
        config = create_config(memory_store, {"name": "Off"})
        msg = diag.run_diagnostic(
            memory_store, None, "hi", config_id=config["id"]
        )
        assert msg["isError"] is True
        assert "not active" in msg["content"]


@pytest.mark.api
@pytest.mark.django_db
class TestDiagnosticMessageView:
    URL = "/api/v1/admin/diagnostic/messages/"

    def test_requires_admin(self, authenticated_client):
        response = authenticated_client.post(
            self.URL, {"message": "hi"}, format="json"
        )
        assert response.status_code == 403

    def test_message_required(self, admin_client):
        response = admin_client.post(self.URL, {}, format="json")
        assert response.status_code == 400

    @patch("mathtutor_console.adapters.django.services.diagnostic."
           "generate_content")
    def test_returns_ai_message(self, mock_generate, admin_client):
        mock_generate.return_value = GEMINI_RESPONSE
        response = admin_client.post(
            self.URL,
            {
                "message": "x = 2, 4",
                "history": [
                    {"type": "student", "content": "hello"},
                    {"type": "ai", "content": "What is a root?"},
                ],
            },
            format="json",
        )
        assert response.status_code == 200
        body = response.json()
        assert body["content"] == DIAGNOSTIC["next_question"]
        text = mock_generate.call_args.kwargs["user_parts"][-1]["text"]
        assert "Student: hello\nTeacher: What is a root?" in text
