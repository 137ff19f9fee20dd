from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from ..serializers import (
    ErrorDetailSerializer,
    LLMConfigSerializer,
    LLMConfigWriteSerializer,
    ResolvedConfigStateSerializer,
    SelectConfigSerializer,
)
from ..services.config_resolver import ActiveLLMConfigResolver
from ..services.llm_config_store import (
    ConfigNotFound,
    activate_config,
    create_config,
    deactivate_config,
    delete_config,
    get_config,
    update_config,
)
from ..services.storage import get_default_store


def _not_found():
    return Response(
        {"detail": "Not found."},
        status=status.HTTP_404_NOT_FOUND,
    )


def _bad_request(e):
    return Response(
        {"detail": str(e)},
        status=status.HTTP_400_BAD_REQUEST,
    )


class AdminLLMConfigListView(APIView):
    """
    GET: Resolved snapshot (all configs, active subset, current config,
    error). Resolution seeds and heals the stored list.
    POST: Add one config (inactive until activated).
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="List LLM configs",
        description=(
            "Resolve the active LLM config and return the snapshot: configs, "
            "active_configs, config (current) and error."
        ),
        responses={200: ResolvedConfigStateSerializer},
    )
    def get(self, request):
        state = ActiveLLMConfigResolver(get_default_store()).resolve()
        return Response(state.to_dict())

    @extend_schema(
        tags=["math-tutor"],
        summary="Create LLM config",
        description=(
            "Add one LLM config. Body: name (required) plus optional prompt, "
            "schema and invocation fields. New configs start inactive."
        ),
        request=LLMConfigWriteSerializer,
        responses={201: LLMConfigSerializer, 400: ErrorDetailSerializer},
    )
    def post(self, request):
        ser = LLMConfigWriteSerializer(data=request.data)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            config = create_config(get_default_store(), ser.validated_data)
        except ValueError as e:
            return _bad_request(e)
        return Response(config, status=status.HTTP_201_CREATED)


class AdminLLMConfigDetailView(APIView):
    """GET/PUT/DELETE one LLM config by id."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Get LLM config",
        description="Get one LLM config by id.",
        responses={200: LLMConfigSerializer, 404: ErrorDetailSerializer},
    )
    def get(self, request, config_id):
        try:
            config = get_config(get_default_store(), config_id)
        except ConfigNotFound:
            return _not_found()
        except ValueError as e:
            return _bad_request(e)
        return Response(config)

    @extend_schema(
        tags=["math-tutor"],
        summary="Update LLM config",
        description=(
            "Update one LLM config by id. isActive and isSystem are not "
            "editable here; use activate/deactivate."
        ),
        request=LLMConfigWriteSerializer,
        responses={
            200: LLMConfigSerializer,
            400: ErrorDetailSerializer,
            404: ErrorDetailSerializer,
        },
    )
    def put(self, request, config_id):
        ser = LLMConfigWriteSerializer(data=request.data, partial=True)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            config = update_config(
                get_default_store(), config_id, ser.validated_data
            )
        except ConfigNotFound:
            return _not_found()
        except ValueError as e:
            return _bad_request(e)
        return Response(config)

    @extend_schema(
        tags=["math-tutor"],
        summary="Delete LLM config",
        description=(
            "Delete one LLM config by id. The system default and the last "
            "remaining config cannot be deleted."
        ),
        responses={
            204: None,
            400: ErrorDetailSerializer,
            404: ErrorDetailSerializer,
        },
    )
    def delete(self, request, config_id):
        try:
            delete_config(get_default_store(), config_id)
        except ConfigNotFound:
            return _not_found()
        except ValueError as e:
            return _bad_request(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminLLMConfigActivateView(APIView):
    """POST: Mark config active and select it as current."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Activate LLM config",
        description="Mark the config active and make it the current one.",
        request=None,
        responses={200: LLMConfigSerializer, 404: ErrorDetailSerializer},
    )
    def post(self, request, config_id):
        try:
            config = activate_config(get_default_store(), config_id)
        except ConfigNotFound:
            return _not_found()
        except ValueError as e:
            return _bad_request(e)
        return Response(config)


class AdminLLMConfigDeactivateView(APIView):
    """POST: Mark config inactive (refused for the system default)."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Deactivate LLM config",
        description=(
            "Mark the config inactive. The system default cannot be "
            "deactivated."
        ),
        request=None,
        responses={
            200: LLMConfigSerializer,
            400: ErrorDetailSerializer,
            404: ErrorDetailSerializer,
        },
    )
    def post(self, request, config_id):
        try:
            config = deactivate_config(get_default_store(), config_id)
        except ConfigNotFound:
            return _not_found()
        except ValueError as e:
            return _bad_request(e)
        return Response(config)


class AdminLLMConfigSelectView(APIView):
    """POST: Select the current config by id."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Select current LLM config",
        description=(
            "Persist config_id as the selected config. Unknown ids return "
            "404. An inactive selection is replaced by an active config on "
            "the next resolution."
        ),
        request=SelectConfigSerializer,
        responses={
            200: ResolvedConfigStateSerializer,
            400: ErrorDetailSerializer,
            404: ErrorDetailSerializer,
        },
    )
    def post(self, request):
        ser = SelectConfigSerializer(data=request.data)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        resolver = ActiveLLMConfigResolver(get_default_store())
        if not resolver.set_active_config(ser.validated_data["config_id"]):
            return _not_found()
        return Response(resolver.state.to_dict())
