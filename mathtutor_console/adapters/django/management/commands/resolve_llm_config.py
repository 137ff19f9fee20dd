"""
Management command to resolve (and heal) the stored LLM config list.

Usage:
  python manage.py resolve_llm_config
  python manage.py resolve_llm_config --select=<config_id>
  python manage.py resolve_llm_config --json

Seeds the system default when no configs are stored, restores or
re-enables it when missing or disabled, and persists the current
selection. Prints the resulting snapshot.
"""
import json
import logging

from django.core.management.base import BaseCommand, CommandError

from mathtutor_console.adapters.django.services.config_resolver import (
    ActiveLLMConfigResolver,
)
from mathtutor_console.adapters.django.services.storage import (
    get_default_store,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Resolve the active LLM config from storage, healing it as needed. "
        "Options: --select=<config_id>, --json."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--select",
            type=str,
            default=None,
            help="Config id to select as current before resolving.",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            default=False,
            help="Print the full snapshot as JSON.",
        )

    def handle(self, *args, **options):
        resolver = ActiveLLMConfigResolver(get_default_store())
        select = options.get("select")
        if select and not resolver.set_active_config(select):
            raise CommandError(f"LLM config not found: {select}")
        state = resolver.resolve()
        current_id = state.config.get("id") if state.config else None
        if select and current_id != select:
            # Inactive selections fall back to the first active config.
            self.stderr.write(
                self.style.WARNING(
                    f"LLM config {select} is not active; "
                    f"current config is {current_id}"
                )
            )

        if options.get("json"):
            self.stdout.write(
                json.dumps(state.to_dict(), ensure_ascii=False, indent=2)
            )
            return
        if state.error:
            raise CommandError(state.error)
        self.stdout.write(
            self.style.SUCCESS(
                f"Current LLM config: {state.config.get('name')} "
                f"(id={state.config.get('id')})"
            )
        )
        self.stdout.write(
            f"configs={len(state.configs)} "
            f"active={len(state.active_configs)}"
        )
        for config in state.configs:
            flags = []
            if config.get("isSystem"):
                flags.append("system")
            if config.get("isActive"):
                flags.append("active")
            self.stdout.write(
                f"  {config.get('id')}  {config.get('name')}  "
                f"[{', '.join(flags)}]"
            )
