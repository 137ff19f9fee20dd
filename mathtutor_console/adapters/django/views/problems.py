from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from mathtutor_console.constants import DIFFICULTIES

from ..serializers import (
    ErrorDetailSerializer,
    ProblemSerializer,
    ProblemWriteSerializer,
)
from ..services.problems import (
    ProblemBankUnreadable,
    ProblemNotFound,
    create_problem,
    delete_problem,
    get_problem,
    image_problem_content,
    image_to_data_url,
    list_categories,
    list_problems,
    update_problem,
)
from ..services.storage import get_default_store


def _unreadable(e):
    return Response(
        {"detail": str(e)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _problem_data(validated):
    """Turn uploaded image files into data URLs."""
    data = dict(validated)
    image = data.pop("image", None)
    explanation_image = data.pop("explanationImage", None)
    if image is not None:
        data["imageUrl"] = image_to_data_url(image)
        if not (data.get("content") or "").strip():
            data["content"] = image_problem_content(image.name)
    if explanation_image is not None:
        data["explanationImageUrl"] = image_to_data_url(explanation_image)
    return data


class AdminProblemListView(APIView):
    """
    GET: List problems (optional search, category, difficulty filters).
    POST: Add a problem (JSON or multipart with image uploads).
    """

    permission_classes = [IsAdminUser]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        tags=["math-tutor"],
        summary="List problems",
        description=(
            "List the problem bank. search matches title, content or "
            "category; category and difficulty filter exactly."
        ),
        parameters=[
            OpenApiParameter(
                "search",
                OpenApiTypes.STR,
                OpenApiParameter.QUERY,
                description="Case-insensitive text search",
            ),
            OpenApiParameter(
                "category",
                OpenApiTypes.STR,
                OpenApiParameter.QUERY,
                description="Exact category",
            ),
            OpenApiParameter(
                "difficulty",
                OpenApiTypes.STR,
                OpenApiParameter.QUERY,
                description="Difficulty filter",
                enum=list(DIFFICULTIES),
            ),
        ],
        responses={200: ProblemSerializer(many=True)},
    )
    def get(self, request):
        try:
            problems = list_problems(
                get_default_store(),
                search=request.query_params.get("search"),
                category=request.query_params.get("category"),
                difficulty=request.query_params.get("difficulty"),
            )
        except ProblemBankUnreadable as e:
            return _unreadable(e)
        return Response(problems)

    @extend_schema(
        tags=["math-tutor"],
        summary="Create problem",
        description=(
            "Add a problem. title is required, plus content or an image "
            "(imageUrl data URL or multipart image upload)."
        ),
        request=ProblemWriteSerializer,
        responses={201: ProblemSerializer, 400: ErrorDetailSerializer},
    )
    def post(self, request):
        ser = ProblemWriteSerializer(data=request.data)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            problem = create_problem(
                get_default_store(), _problem_data(ser.validated_data)
            )
        except ProblemBankUnreadable as e:
            return _unreadable(e)
        except ValueError as e:
            return Response(
                {"detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(problem, status=status.HTTP_201_CREATED)


class AdminProblemDetailView(APIView):
    """GET/PUT/DELETE one problem by id."""

    permission_classes = [IsAdminUser]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        tags=["math-tutor"],
        summary="Get problem",
        responses={200: ProblemSerializer, 404: ErrorDetailSerializer},
    )
    def get(self, request, problem_id):
        try:
            problem = get_problem(get_default_store(), problem_id)
        except ProblemNotFound:
            return Response(
                {"detail": "Not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ProblemBankUnreadable as e:
            return _unreadable(e)
        return Response(problem)

    @extend_schema(
        tags=["math-tutor"],
        summary="Update problem",
        description=(
            "Update one problem. Send imageUrl or explanationImageUrl as "
            "null/blank to remove an image."
        ),
        request=ProblemWriteSerializer,
        responses={
            200: ProblemSerializer,
            400: ErrorDetailSerializer,
            404: ErrorDetailSerializer,
        },
    )
    def put(self, request, problem_id):
        ser = ProblemWriteSerializer(data=request.data, partial=True)
        if not ser.is_valid():
            return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            problem = update_problem(
                get_default_store(),
                problem_id,
                _problem_data(ser.validated_data),
            )
        except ProblemNotFound:
            return Response(
                {"detail": "Not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ProblemBankUnreadable as e:
            return _unreadable(e)
        except ValueError as e:
            return Response(
                {"detail": str(e)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(problem)

    @extend_schema(
        tags=["math-tutor"],
        summary="Delete problem",
        responses={204: None, 404: ErrorDetailSerializer},
    )
    def delete(self, request, problem_id):
        try:
            delete_problem(get_default_store(), problem_id)
        except ProblemNotFound:
            return Response(
                {"detail": "Not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ProblemBankUnreadable as e:
            return _unreadable(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminProblemCategoriesView(APIView):
    """GET: Distinct problem categories in insertion order."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        tags=["math-tutor"],
        summary="List problem categories",
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request):
        try:
            categories = list_categories(get_default_store())
        except ProblemBankUnreadable as e:
            return _unreadable(e)
        return Response({"categories": categories})
