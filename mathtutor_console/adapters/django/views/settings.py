from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from ..serializers import (
    BackupSerializer,
    ErrorDetailSerializer,
    SettingsSerializer,
)
from ..services.settings_store import (
    create_backup,
    export_settings,
    get_settings,
    import_settings,
    reset_data,
    save_settings,
    store_backup,
)
from ..services.storage import get_default_store


class AdminSettingsView(APIView):
    """
    GET: Current settings (stored sections merged over defaults).
    PUT: Merge the given sections into the stored settings.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Get settings",
        responses={200: SettingsSerializer},
    )
    def get(self, request):
        return Response(get_settings(get_default_store()))

    @extend_schema(
        tags=["math-tutor"],
        summary="Save settings",
        description=(
            "Merge sections (api, system, ui, notifications, data) into the "
            "stored settings. The Gemini key is also stored on its own."
        ),
        request=SettingsSerializer,
        responses={200: SettingsSerializer, 400: ErrorDetailSerializer},
    )
    def put(self, request):
        ser = SettingsSerializer(data=request.data)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        settings = save_settings(get_default_store(), ser.validated_data)
        return Response(settings)


class AdminSettingsExportView(APIView):
    """GET: Settings document with API keys hidden."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Export settings",
        responses={200: SettingsSerializer},
    )
    def get(self, request):
        return Response(export_settings(get_default_store()))


class AdminSettingsImportView(APIView):
    """POST: Merge an exported settings document."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Import settings",
        description=(
            "Merge an exported settings document. Hidden API key "
            "placeholders keep the stored keys."
        ),
        request=SettingsSerializer,
        responses={200: SettingsSerializer, 400: ErrorDetailSerializer},
    )
    def post(self, request):
        try:
            settings = import_settings(get_default_store(), request.data)
        except ValueError as e:
            return Response(
                {"detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(settings)


class AdminDataResetView(APIView):
    """POST: Remove problems, prompt, prompt versions and settings."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Reset console data",
        request=None,
        responses={200: OpenApiTypes.OBJECT},
    )
    def post(self, request):
        removed = reset_data(get_default_store())
        return Response({"removed": removed})


class AdminBackupView(APIView):
    """
    GET: Build a backup document (download).
    POST: Build a backup and keep it in the backup history.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Download backup",
        responses={200: BackupSerializer},
    )
    def get(self, request):
        return Response(create_backup(get_default_store()))

    @extend_schema(
        tags=["math-tutor"],
        summary="Store backup",
        description=(
            "Store a backup; backups older than data.retentionDays are "
            "pruned."
        ),
        request=None,
        responses={201: BackupSerializer},
    )
    def post(self, request):
        backup = store_backup(get_default_store())
        return Response(backup, status=status.HTTP_201_CREATED)
