from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from ..serializers import DashboardSerializer
from ..services.config_resolver import ActiveLLMConfigResolver
from ..services.problems import (
    ProblemBankUnreadable,
    list_categories,
    list_problems,
)
from ..services.prompt_versions import list_prompt_versions
from ..services.storage import get_default_store


class AdminDashboardView(APIView):
    """GET: Counts and the current LLM config for the admin home page."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Dashboard summary",
        description=(
            "Counts of problems, categories, LLM configs (all and active) "
            "and prompt versions; name of the current config and the "
            "resolver error, if any."
        ),
        responses={200: DashboardSerializer},
    )
    def get(self, request):
        store = get_default_store()
        state = ActiveLLMConfigResolver(store).resolve()
        error = state.error
        try:
            problems = len(list_problems(store))
            categories = len(list_categories(store))
        except ProblemBankUnreadable as e:
            problems = categories = None
            error = error or str(e)
        return Response(
            {
                "problems": problems,
                "categories": categories,
                "llm_configs": len(state.configs),
                "active_llm_configs": len(state.active_configs),
                "prompt_versions": len(list_prompt_versions(store)),
                "current_config": (
                    state.config.get("name") if state.config else None
                ),
                "error": error,
            }
        )
