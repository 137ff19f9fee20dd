"""
Public proxy endpoints used by the chat page: the generateContent proxy
(API key stays server-side) and the public config endpoint.
"""
import logging

import httpx
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from ..conf import get_gemini_api_key, get_public_gemini_api_key
from ..serializers import (
    GeminiProxyRequestSerializer,
    ProxyErrorSerializer,
    PublicConfigSerializer,
)
from ..services.gemini_client import GeminiAPIError, generate_content

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("model", "systemPrompt", "userParts", "generationConfig")


class GeminiProxyView(APIView):
    """POST: Forward one generateContent call to Gemini."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["math-tutor"],
        summary="Gemini generateContent proxy",
        description=(
            "Forward model, systemPrompt, userParts and generationConfig "
            "to Gemini with the server-side GEMINI_API_KEY. Vendor errors "
            "are relayed with their status; details are truncated."
        ),
        request=GeminiProxyRequestSerializer,
        responses={
            200: OpenApiTypes.OBJECT,
            400: ProxyErrorSerializer,
            500: ProxyErrorSerializer,
        },
    )
    def post(self, request):
        api_key = get_gemini_api_key()
        if not api_key:
            return Response(
                {
                    "error": (
                        "API key is not configured. Check the server "
                        "setting GEMINI_API_KEY."
                    )
                },
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        body = request.data if isinstance(request.data, dict) else {}
        if any(body.get(field) in (None, "") for field in REQUIRED_FIELDS):
            return Response(
                {"error": "Required parameters are missing."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            data = generate_content(
                model=body["model"],
                system_prompt=body["systemPrompt"],
                user_parts=body["userParts"],
                generation_config=body["generationConfig"],
                api_key=api_key,
            )
        except GeminiAPIError as e:
            return Response(
                {"error": e.error, "details": e.details},
                status=e.status_code,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.exception("Gemini proxy failed")
            return Response(
                {"error": "A server error occurred.", "details": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response(data)


class PublicConfigView(APIView):
    """GET: Public (non-secret) client config."""

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        tags=["math-tutor"],
        summary="Public client config",
        responses={200: PublicConfigSerializer},
    )
    def get(self, request):
        return Response({"apiKey": get_public_gemini_api_key()})
