# Generated for mathtutor_console adapter (table mathtutor_console_stored_value)

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="StoredValue",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "key",
                    models.CharField(
                        db_index=True,
                        help_text=(
                            "Storage key, e.g. math_tutor_llm_configs."
                        ),
                        max_length=200,
                        unique=True,
                    ),
                ),
                (
                    "value",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Raw stored string (JSON document or plain id).",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Stored Value",
                "verbose_name_plural": "Stored Values",
                "db_table": "mathtutor_console_stored_value",
                "ordering": ["key"],
            },
        ),
    ]
