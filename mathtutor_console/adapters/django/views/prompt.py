from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from ..serializers import (
    ErrorDetailSerializer,
    PromptSaveSerializer,
    PromptSerializer,
    PromptVersionSerializer,
)
from ..services.prompt_versions import (
    PromptVersionNotFound,
    delete_prompt_version,
    get_custom_prompt,
    list_prompt_versions,
    restore_prompt_version,
    save_custom_prompt,
)
from ..services.storage import get_default_store


class AdminPromptView(APIView):
    """
    GET: Current system prompt (built-in prompt when none saved).
    PUT: Save a new prompt and record it as a version.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Get system prompt",
        responses={200: PromptSerializer},
    )
    def get(self, request):
        return Response(get_custom_prompt(get_default_store()))

    @extend_schema(
        tags=["math-tutor"],
        summary="Save system prompt",
        description=(
            "Store the prompt as current and push it onto the version "
            "history (newest first, capped)."
        ),
        request=PromptSaveSerializer,
        responses={200: PromptVersionSerializer, 400: ErrorDetailSerializer},
    )
    def put(self, request):
        ser = PromptSaveSerializer(data=request.data)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            version = save_custom_prompt(
                get_default_store(),
                ser.validated_data["prompt"],
                ser.validated_data.get("note"),
            )
        except ValueError as e:
            return Response(
                {"detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(version)


class AdminPromptVersionListView(APIView):
    """GET: Saved prompt versions, newest first."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="List prompt versions",
        responses={200: PromptVersionSerializer(many=True)},
    )
    def get(self, request):
        return Response(list_prompt_versions(get_default_store()))


class AdminPromptVersionDetailView(APIView):
    """DELETE: Remove one version from the history."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Delete prompt version",
        responses={204: None, 404: ErrorDetailSerializer},
    )
    def delete(self, request, version_id):
        try:
            delete_prompt_version(get_default_store(), version_id)
        except PromptVersionNotFound:
            return Response(
                {"detail": "Not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminPromptVersionRestoreView(APIView):
    """POST: Make a saved version the current prompt."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Restore prompt version",
        request=None,
        responses={200: PromptSerializer, 404: ErrorDetailSerializer},
    )
    def post(self, request, version_id):
        store = get_default_store()
        try:
            restore_prompt_version(store, version_id)
        except PromptVersionNotFound:
            return Response(
                {"detail": "Not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(get_custom_prompt(store))
