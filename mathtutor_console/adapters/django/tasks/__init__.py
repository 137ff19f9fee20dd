"""
Celery tasks for mathtutor_console: automatic backups.
"""
from mathtutor_console.adapters.django.tasks.backup import create_backup_task

__all__ = [
    "create_backup_task",
]
