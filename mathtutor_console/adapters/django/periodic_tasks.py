"""
Register this app's periodic tasks on a Celery app's beat schedule.

Call from the host project's Celery setup:
    register_periodic_tasks(app)
Registers: auto-backup (MATHTUTOR_CONSOLE_BACKUP_CRONTAB).
"""
from django.conf import settings

from mathtutor_console.adapters.django.conf import get_backup_beat_schedule

DEFAULT_BACKUP_ENABLED = True


def register_periodic_tasks(app):
    """Add enabled entries to app.conf.beat_schedule. Returns the names."""
    enabled = getattr(
        settings,
        "MATHTUTOR_CONSOLE_BACKUP_ENABLED",
        DEFAULT_BACKUP_ENABLED,
    )
    added = []
    if not enabled:
        return added
    schedule = dict(app.conf.beat_schedule or {})
    for name, entry in get_backup_beat_schedule().items():
        if _add_entry(schedule, name, entry):
            added.append(name)
    app.conf.beat_schedule = schedule
    return added


def _add_entry(schedule, name, entry):
    task_name = entry.get("task")
    if not task_name or entry.get("schedule") is None:
        return False
    schedule[name] = {
        "task": task_name,
        "schedule": entry["schedule"],
        "args": entry.get("args", ()),
        "kwargs": entry.get("kwargs") or {},
        "options": entry.get("options") or {},
    }
    return True
