"""
Admin API views split by domain.
"""
from mathtutor_console.adapters.django.views.config_management import (
    AdminLLMConfigActivateView,
    AdminLLMConfigDeactivateView,
    AdminLLMConfigDetailView,
    AdminLLMConfigListView,
    AdminLLMConfigSelectView,
)
from mathtutor_console.adapters.django.views.dashboard import (
    AdminDashboardView,
)
from mathtutor_console.adapters.django.views.diagnostic import (
    AdminDiagnosticMessageView,
)
from mathtutor_console.adapters.django.views.gemini import (
    GeminiProxyView,
    PublicConfigView,
)
from mathtutor_console.adapters.django.views.problems import (
    AdminProblemCategoriesView,
    AdminProblemDetailView,
    AdminProblemListView,
)
from mathtutor_console.adapters.django.views.prompt import (
    AdminPromptVersionDetailView,
    AdminPromptVersionListView,
    AdminPromptVersionRestoreView,
    AdminPromptView,
)
from mathtutor_console.adapters.django.views.settings import (
    AdminBackupView,
    AdminDataResetView,
    AdminSettingsExportView,
    AdminSettingsImportView,
    AdminSettingsView,
)

__all__ = [
    "AdminBackupView",
    "AdminDashboardView",
    "AdminDataResetView",
    "AdminDiagnosticMessageView",
    "AdminLLMConfigActivateView",
    "AdminLLMConfigDeactivateView",
    "AdminLLMConfigDetailView",
    "AdminLLMConfigListView",
    "AdminLLMConfigSelectView",
    "AdminProblemCategoriesView",
    "AdminProblemDetailView",
    "AdminProblemListView",
    "AdminPromptVersionDetailView",
    "AdminPromptVersionListView",
    "AdminPromptVersionRestoreView",
    "AdminPromptView",
    "AdminSettingsExportView",
    "AdminSettingsImportView",
    "AdminSettingsView",
    "GeminiProxyView",
    "PublicConfigView",
]
