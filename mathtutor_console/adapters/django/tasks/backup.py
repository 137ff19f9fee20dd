"""
Celery beat task: store a backup of problems, prompt and settings.
No-op when the data.autoBackup setting is off.
"""
import logging

from celery import shared_task

from mathtutor_console.adapters.django.services.settings_store import (
    get_settings,
    store_backup,
)
from mathtutor_console.adapters.django.services.storage import (
    get_default_store,
)

logger = logging.getLogger(__name__)

TASK_NAME = (
    "mathtutor_console.adapters.django.tasks.backup.create_backup_task"
)


@shared_task(
    name=TASK_NAME,
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_kwargs={"max_retries": 3},
)
def create_backup_task(self, force=False):
    """
    Store one backup in math_tutor_backups (older ones are pruned by
    data.retentionDays). force=True ignores data.autoBackup.
    """
    logger.info(f"Starting create_backup_task task_id={self.request.id}")
    store = get_default_store()
    if not force and not get_settings(store)["data"].get("autoBackup"):
        logger.info(
            "Finished create_backup_task (skipped: auto_backup_disabled)"
        )
        return {"skipped": True, "reason": "auto_backup_disabled"}
    try:
        backup = store_backup(store)
    except Exception as e:
        logger.exception(f"Failed create_backup_task: {e}")
        raise
    logger.info(
        f"Finished create_backup_task timestamp={backup['timestamp']}"
    )
    return {
        "skipped": False,
        "timestamp": backup["timestamp"],
        "problems": len(backup["problems"]),
    }
