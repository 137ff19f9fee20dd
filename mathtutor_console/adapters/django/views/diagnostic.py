from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from ..serializers import (
    ChatMessageSerializer,
    DiagnosticMessageRequestSerializer,
)
from ..services.diagnostic import run_diagnostic
from ..services.storage import get_default_store


class AdminDiagnosticMessageView(APIView):
    """
    POST: Send one student message and get the tutor's reply.
    LLM failures come back as an isError message with status 200.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Diagnostic chat message",
        description=(
            "Diagnose the student message against the selected problem "
            "with the current (or given active) LLM config. history is the "
            "transcript so far; the last 10 messages form the context."
        ),
        request=DiagnosticMessageRequestSerializer,
        responses={200: ChatMessageSerializer},
    )
    def post(self, request):
        ser = DiagnosticMessageRequestSerializer(data=request.data)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        data = ser.validated_data
        message = run_diagnostic(
            get_default_store(),
            problem_id=data.get("problem_id") or None,
            message=data["message"],
            history=[dict(m) for m in data.get("history") or []],
            config_id=data.get("config_id") or None,
        )
        return Response(message)
