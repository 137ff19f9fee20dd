"""
Shared constants for mathtutor_console.

Storage keys, default LLM invocation values, and proxy limits.
"""
# Storage keys. Values under these keys are raw strings (JSON or plain id),
# the same on-disk format the browser console kept in localStorage.
LLM_CONFIGS_KEY = "math_tutor_llm_configs"
ACTIVE_LLM_CONFIG_ID_KEY = "math_tutor_active_llm_config_id"
PROBLEMS_KEY = "math_tutor_problems"
SETTINGS_KEY = "math_tutor_settings"
GEMINI_API_KEY_KEY = "gemini_api_key"
CUSTOM_PROMPT_KEY = "math_tutor_custom_prompt"
PROMPT_VERSIONS_KEY = "math_tutor_prompt_versions"
BACKUPS_KEY = "math_tutor_backups"

# Keys whose changes trigger re-resolution of the active LLM config.
LLM_CONFIG_STORAGE_KEYS = (LLM_CONFIGS_KEY, ACTIVE_LLM_CONFIG_ID_KEY)

# Keys removed by the settings "reset all data" action.
RESETTABLE_KEYS = (
    PROBLEMS_KEY,
    CUSTOM_PROMPT_KEY,
    PROMPT_VERSIONS_KEY,
    SETTINGS_KEY,
)

# Default LLM invocation values for the system config.
DEFAULT_PROVIDER = "gemini"
DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_TEMPERATURE = 0
DEFAULT_MAX_OUTPUT_TOKENS = 8192
DEFAULT_THINKING_BUDGET = 1800
DEFAULT_RESPONSE_MIME_TYPE = "application/json"
DEFAULT_CONFIG_VERSION = "v1.0.0"

# Vendor error bodies relayed to callers are cut to this many characters.
ERROR_DETAILS_MAX_CHARS = 500

# Number of most recent chat messages folded into the diagnostic context.
CONTEXT_MESSAGE_LIMIT = 10

# Placeholder shown instead of API keys in exported settings.
HIDDEN_SECRET = "[HIDDEN]"

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"
