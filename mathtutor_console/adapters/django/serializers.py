"""
Serializers for the mathtutor_console admin API.

Request serializers validate payloads; response serializers document the
JSON shapes for OpenAPI/Swagger. Field names are camelCase to match the
stored records.
"""
from rest_framework import serializers

from mathtutor_console.constants import DIFFICULTIES


class LLMConfigWriteSerializer(serializers.Serializer):
    """
    Payload for creating/updating an LLM config. All fields optional on
    update; name is required on create.
    """

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    version = serializers.CharField(
        max_length=50, required=False, allow_blank=True
    )
    systemPrompt = serializers.CharField(
        required=False,
        allow_blank=True,
        trim_whitespace=False,
        help_text="System prompt; blank uses the built-in prompt.",
    )
    userPrompt = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    inputSchema = serializers.JSONField(required=False)
    outputSchema = serializers.JSONField(
        required=False,
        help_text="Response schema sent as generationConfig.responseSchema.",
    )
    responseMimeType = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    provider = serializers.CharField(
        max_length=50,
        required=False,
        help_text="gemini (default), openai or anthropic.",
    )
    model = serializers.CharField(max_length=200, required=False)
    temperature = serializers.FloatField(
        required=False, min_value=0, max_value=2
    )
    maxOutputTokens = serializers.IntegerField(required=False, min_value=1)
    thinkingBudget = serializers.IntegerField(required=False, min_value=0)


class LLMConfigSerializer(LLMConfigWriteSerializer):
    """Stored LLM config record (response docs)."""

    id = serializers.CharField()
    createdAt = serializers.CharField()
    updatedAt = serializers.CharField()
    isActive = serializers.BooleanField()
    isSystem = serializers.BooleanField()


class ResolvedConfigStateSerializer(serializers.Serializer):
    """Snapshot returned by the resolver."""

    configs = LLMConfigSerializer(many=True)
    active_configs = LLMConfigSerializer(many=True)
    config = LLMConfigSerializer(allow_null=True)
    error = serializers.CharField(allow_null=True)


class SelectConfigSerializer(serializers.Serializer):
    config_id = serializers.CharField(max_length=64)


class ProblemWriteSerializer(serializers.Serializer):
    """Problem payload. imageUrl/explanationImageUrl are data URLs."""

    title = serializers.CharField(max_length=500, required=False)
    content = serializers.CharField(required=False, allow_blank=True)
    imageUrl = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    explanationText = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    explanationImageUrl = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    category = serializers.CharField(
        max_length=200, required=False, allow_blank=True
    )
    grade = serializers.CharField(
        max_length=100, required=False, allow_blank=True
    )
    unit = serializers.CharField(
        max_length=200, required=False, allow_blank=True
    )
    difficulty = serializers.ChoiceField(
        choices=list(DIFFICULTIES), required=False
    )
    image = serializers.FileField(
        required=False,
        write_only=True,
        help_text="Problem image upload (multipart); stored as data URL.",
    )
    explanationImage = serializers.FileField(
        required=False,
        write_only=True,
        help_text="Explanation image upload (multipart).",
    )


class ProblemSerializer(serializers.Serializer):
    """Stored problem record (response docs)."""

    id = serializers.CharField()
    title = serializers.CharField()
    content = serializers.CharField(allow_blank=True)
    imageUrl = serializers.CharField(required=False)
    explanationText = serializers.CharField(required=False)
    explanationImageUrl = serializers.CharField(required=False)
    category = serializers.CharField(allow_blank=True)
    grade = serializers.CharField(allow_blank=True)
    unit = serializers.CharField(allow_blank=True)
    difficulty = serializers.CharField()
    createdAt = serializers.CharField()
    updatedAt = serializers.CharField()


class PromptSaveSerializer(serializers.Serializer):
    prompt = serializers.CharField(trim_whitespace=False)
    note = serializers.CharField(
        required=False, allow_blank=True, max_length=500
    )


class PromptSerializer(serializers.Serializer):
    prompt = serializers.CharField()
    is_custom = serializers.BooleanField(
        help_text="False when the built-in prompt is in use.",
    )


class PromptVersionSerializer(serializers.Serializer):
    id = serializers.CharField()
    prompt = serializers.CharField()
    note = serializers.CharField(allow_blank=True)
    createdAt = serializers.CharField()


class SettingsSerializer(serializers.Serializer):
    """
    Settings document grouped by section. Sections are free-form objects
    merged over defaults.
    """

    api = serializers.DictField(required=False)
    system = serializers.DictField(required=False)
    ui = serializers.DictField(required=False)
    notifications = serializers.DictField(required=False)
    data = serializers.DictField(required=False)


class BackupSerializer(serializers.Serializer):
    timestamp = serializers.CharField()
    problems = serializers.ListField(child=serializers.DictField())
    prompt = serializers.CharField(allow_null=True)
    promptVersions = serializers.ListField(child=serializers.DictField())
    settings = SettingsSerializer()


class GeminiProxyRequestSerializer(serializers.Serializer):
    """Body of the Gemini proxy call (docs only; checked in the view)."""

    model = serializers.CharField()
    systemPrompt = serializers.CharField()
    userParts = serializers.ListField(child=serializers.DictField())
    generationConfig = serializers.DictField()


class ProxyErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
    details = serializers.CharField(required=False, allow_blank=True)


class PublicConfigSerializer(serializers.Serializer):
    apiKey = serializers.CharField(allow_blank=True)


class ChatMessageSerializer(serializers.Serializer):
    """One transcript message."""

    id = serializers.CharField(required=False)
    type = serializers.ChoiceField(choices=["student", "ai"])
    content = serializers.CharField(allow_blank=True)
    timestamp = serializers.CharField(required=False)
    diagnostic = serializers.DictField(required=False, allow_null=True)
    isError = serializers.BooleanField(required=False)
    debug = serializers.CharField(required=False, allow_blank=True)


class DiagnosticMessageRequestSerializer(serializers.Serializer):
    message = serializers.CharField(
        help_text="Latest student input (answer, question or working).",
    )
    problem_id = serializers.CharField(required=False, allow_blank=True)
    config_id = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="Active config to use; default is the current config.",
    )
    history = ChatMessageSerializer(many=True, required=False)


class DashboardSerializer(serializers.Serializer):
    problems = serializers.IntegerField(allow_null=True)
    categories = serializers.IntegerField(allow_null=True)
    llm_configs = serializers.IntegerField()
    active_llm_configs = serializers.IntegerField()
    prompt_versions = serializers.IntegerField()
    current_config = serializers.CharField(allow_null=True)
    error = serializers.CharField(allow_null=True)


class ErrorDetailSerializer(serializers.Serializer):
    """Standard error body for 400/404 responses in API docs."""

    detail = serializers.CharField(
        allow_blank=True,
        help_text="Human-readable error message.",
    )
