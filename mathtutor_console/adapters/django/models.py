"""
Key/value storage model for the math tutor console.
"""
from django.db import models
from django.utils.translation import gettext_lazy as _


class StoredValue(models.Model):
    """
    One persisted storage entry: a string value under a unique key.

    Values are kept as raw text (usually JSON) so that the console reads
    them back exactly as written, including malformed content, which the
    readers must detect and report instead of the database rejecting it.
    """

    key = models.CharField(
        max_length=200,
        unique=True,
        db_index=True,
        help_text="Storage key, e.g. math_tutor_llm_configs.",
    )
    value = models.TextField(
        blank=True,
        default="",
        help_text="Raw stored string (JSON document or plain id).",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "mathtutor_console_stored_value"
        verbose_name = _("Stored Value")
        verbose_name_plural = _("Stored Values")
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key} ({len(self.value or '')} chars)"
