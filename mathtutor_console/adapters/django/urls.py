"""
URL configuration for the mathtutor_console admin API.

Include under an admin prefix, e.g.:
    path('api/v1/admin/', include('mathtutor_console.adapters.django.urls')),
The gemini/ and config/ proxy endpoints are public.
"""
from django.urls import path

from mathtutor_console.adapters.django.views import (
    AdminBackupView,
    AdminDashboardView,
    AdminDataResetView,
    AdminDiagnosticMessageView,
    AdminLLMConfigActivateView,
    AdminLLMConfigDeactivateView,
    AdminLLMConfigDetailView,
    AdminLLMConfigListView,
    AdminLLMConfigSelectView,
    AdminProblemCategoriesView,
    AdminProblemDetailView,
    AdminProblemListView,
    AdminPromptVersionDetailView,
    AdminPromptVersionListView,
    AdminPromptVersionRestoreView,
    AdminPromptView,
    AdminSettingsExportView,
    AdminSettingsImportView,
    AdminSettingsView,
    GeminiProxyView,
    PublicConfigView,
)

app_name = "mathtutor_console"

urlpatterns = [
    path("dashboard/", AdminDashboardView.as_view(), name="dashboard"),
    path(
        "llm-configs/",
        AdminLLMConfigListView.as_view(),
        name="llm-configs",
    ),
    path(
        "llm-configs/select/",
        AdminLLMConfigSelectView.as_view(),
        name="llm-config-select",
    ),
    path(
        "llm-configs/<str:config_id>/",
        AdminLLMConfigDetailView.as_view(),
        name="llm-config-detail",
    ),
    path(
        "llm-configs/<str:config_id>/activate/",
        AdminLLMConfigActivateView.as_view(),
        name="llm-config-activate",
    ),
    path(
        "llm-configs/<str:config_id>/deactivate/",
        AdminLLMConfigDeactivateView.as_view(),
        name="llm-config-deactivate",
    ),
    path("problems/", AdminProblemListView.as_view(), name="problems"),
    path(
        "problems/categories/",
        AdminProblemCategoriesView.as_view(),
        name="problem-categories",
    ),
    path(
        "problems/<str:problem_id>/",
        AdminProblemDetailView.as_view(),
        name="problem-detail",
    ),
    path("prompt/", AdminPromptView.as_view(), name="prompt"),
    path(
        "prompt/versions/",
        AdminPromptVersionListView.as_view(),
        name="prompt-versions",
    ),
    path(
        "prompt/versions/<str:version_id>/",
        AdminPromptVersionDetailView.as_view(),
        name="prompt-version-detail",
    ),
    path(
        "prompt/versions/<str:version_id>/restore/",
        AdminPromptVersionRestoreView.as_view(),
        name="prompt-version-restore",
    ),
    path("settings/", AdminSettingsView.as_view(), name="settings"),
    path(
        "settings/export/",
        AdminSettingsExportView.as_view(),
        name="settings-export",
    ),
    path(
        "settings/import/",
        AdminSettingsImportView.as_view(),
        name="settings-import",
    ),
    path("data/reset/", AdminDataResetView.as_view(), name="data-reset"),
    path("backups/", AdminBackupView.as_view(), name="backups"),
    path(
        "diagnostic/messages/",
        AdminDiagnosticMessageView.as_view(),
        name="diagnostic-messages",
    ),
    path("gemini/", GeminiProxyView.as_view(), name="gemini-proxy"),
    path("config/", PublicConfigView.as_view(), name="public-config"),
]
