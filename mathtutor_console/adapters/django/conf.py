"""
Global config for mathtutor_console: API keys, vendor endpoint, storage
backend, prompt history limit, and backup schedule.

Everything is read from Django settings with module defaults.
"""
from django.conf import settings

try:
    from celery.schedules import crontab
except ImportError:
    crontab = None

DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_REQUEST_TIMEOUT = 60
DEFAULT_STORE = (
    "mathtutor_console.adapters.django.services.storage."
    "DatabaseKeyValueStore"
)
DEFAULT_MAX_PROMPT_VERSIONS = 50
DEFAULT_BACKUP_CRONTAB = "0 3 * * *"


def get_gemini_api_key() -> str:
    """Server-side Gemini key used by the proxy. Empty when unset."""
    return (getattr(settings, "GEMINI_API_KEY", "") or "").strip()


def get_public_gemini_api_key() -> str:
    """Non-secret key value served by the public config endpoint."""
    return (
        getattr(settings, "MATHTUTOR_CONSOLE_PUBLIC_GEMINI_API_KEY", "")
        or ""
    )


def get_gemini_api_base() -> str:
    """Base URL of the generative-language REST API (no trailing slash)."""
    val = getattr(
        settings,
        "MATHTUTOR_CONSOLE_GEMINI_API_BASE",
        DEFAULT_GEMINI_API_BASE,
    )
    return (val or DEFAULT_GEMINI_API_BASE).rstrip("/")


def get_request_timeout() -> float:
    """Timeout in seconds for outbound LLM HTTP calls."""
    val = getattr(
        settings,
        "MATHTUTOR_CONSOLE_REQUEST_TIMEOUT",
        DEFAULT_REQUEST_TIMEOUT,
    )
    try:
        val = float(val)
    except (TypeError, ValueError):
        return float(DEFAULT_REQUEST_TIMEOUT)
    return val if val > 0 else float(DEFAULT_REQUEST_TIMEOUT)


def get_store_path() -> str:
    """Dotted path of the KeyValueStore class used by default."""
    return getattr(settings, "MATHTUTOR_CONSOLE_STORE", DEFAULT_STORE)


def get_max_prompt_versions() -> int:
    """How many prompt versions to keep (newest first). Default 50."""
    val = getattr(
        settings,
        "MATHTUTOR_CONSOLE_MAX_PROMPT_VERSIONS",
        DEFAULT_MAX_PROMPT_VERSIONS,
    )
    if isinstance(val, int) and val > 0:
        return val
    return DEFAULT_MAX_PROMPT_VERSIONS


def get_backup_crontab() -> str:
    """Five-field cron expression for the auto-backup task."""
    val = getattr(
        settings,
        "MATHTUTOR_CONSOLE_BACKUP_CRONTAB",
        DEFAULT_BACKUP_CRONTAB,
    )
    if isinstance(val, str) and val.strip():
        return val.strip()
    return DEFAULT_BACKUP_CRONTAB


def _crontab_from_expression(expr: str):
    """Parse 5-field cron into Celery crontab. On parse error returns None."""
    if not crontab or not expr:
        return None
    parts = str(expr).strip().split()
    if len(parts) != 5:
        return None
    try:
        return crontab(
            minute=parts[0],
            hour=parts[1],
            day_of_month=parts[2],
            month_of_year=parts[3],
            day_of_week=parts[4],
        )
    except (TypeError, ValueError):
        return None


def get_backup_beat_schedule():
    """
    Celery beat schedule entry for the auto-backup task.
    Falls back to a daily interval when the crontab does not parse.
    """
    task_name = (
        "mathtutor_console.adapters.django.tasks.backup.create_backup_task"
    )
    schedule = _crontab_from_expression(get_backup_crontab())
    if schedule is None:
        schedule = 24 * 3600.0
    return {
        "mathtutor-console-auto-backup": {
            "task": task_name,
            "schedule": schedule,
            "options": {},
        }
    }
