"""
API and service tests for the problem bank.
"""
import base64
import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from mathtutor_console.adapters.django.services.problems import (
    DEFAULT_PROBLEM,
    ProblemBankUnreadable,
    create_problem,
    ensure_default_problem,
    image_to_data_url,
    list_categories,
    list_problems,
)

BASE = "/api/v1/admin/problems/"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


@pytest.mark.api
@pytest.mark.django_db
class TestAdminProblems:
    def test_requires_admin(self, authenticated_client):
        assert authenticated_client.get(BASE).status_code == 403

    def test_create_list_update_delete(self, admin_client):
        response = admin_client.post(
            BASE,
            {
                "title": "Quadratic roots",
                "content": "Find the roots of x^2 - 5x + 6 = 0.",
                "category": "Equations",
                "difficulty": "hard",
            },
            format="json",
        )
        assert response.status_code == 201
        problem = response.json()
        assert problem["difficulty"] == "hard"

        listed = admin_client.get(BASE).json()
        assert [p["id"] for p in listed] == [problem["id"]]

        url = f"{BASE}{problem['id']}/"
        response = admin_client.put(
            url, {"explanationText": "Factor it."}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["explanationText"] == "Factor it."
        assert response.json()["title"] == "Quadratic roots"

        assert admin_client.delete(url).status_code == 204
        assert admin_client.get(url).status_code == 404

    def test_create_requires_title_and_content_or_image(self, admin_client):
        response = admin_client.post(
            BASE, {"content": "no title"}, format="json"
        )
        assert response.status_code == 400
        response = admin_client.post(BASE, {"title": "t"}, format="json")
        assert response.status_code == 400
        assert "content or image" in response.json()["detail"]

    def test_multipart_image_upload(self, admin_client):
        upload = SimpleUploadedFile(
            "triangle.png", PNG_BYTES, content_type="image/png"
        )
        response = admin_client.post(
            BASE,
            {"title": "Triangle", "image": upload},
            format="multipart",
        )
        assert response.status_code == 201, response.content
        problem = response.json()
        encoded = base64.b64encode(PNG_BYTES).decode("ascii")
        assert problem["imageUrl"] == f"data:image/png;base64,{encoded}"
        assert problem["content"] == "[Image problem: triangle.png]"

    def test_filters_and_categories(self, admin_client):
        for title, category, difficulty in (
            ("Snail", "Speed", "easy"),
            ("Train", "Speed", "medium"),
            ("Area", "Geometry", "medium"),
        ):
            admin_client.post(
                BASE,
                {
                    "title": title,
                    "content": f"{title} problem",
                    "category": category,
                    "difficulty": difficulty,
                },
                format="json",
            )
        titles = [
            p["title"]
            for p in admin_client.get(BASE, {"search": "TRAIN"}).json()
        ]
        assert titles == ["Train"]
        titles = [
            p["title"]
            for p in admin_client.get(
                BASE, {"category": "Speed", "difficulty": "medium"}
            ).json()
        ]
        assert titles == ["Train"]

        response = admin_client.get(f"{BASE}categories/")
        assert response.json() == {"categories": ["Speed", "Geometry"]}

    def test_unreadable_bank_returns_500(self, admin_client, db_store):
        db_store.set("math_tutor_problems", "[{broken")
        response = admin_client.get(BASE)
        assert response.status_code == 500
        assert "unreadable" in response.json()["detail"]
        response = admin_client.post(
            BASE, {"title": "t", "content": "c"}, format="json"
        )
        assert response.status_code == 500
        assert db_store.get("math_tutor_problems") == "[{broken"
        body = admin_client.get("/api/v1/admin/dashboard/").json()
        assert body["problems"] is None
        assert "unreadable" in body["error"]


@pytest.mark.unit
class TestProblemService:
    def test_unknown_difficulty_falls_back_to_medium(self, memory_store):
        problem = create_problem(
            memory_store,
            {"title": "t", "content": "c", "difficulty": "extreme"},
        )
        assert problem["difficulty"] == "medium"

    def test_ensure_default_problem_seeds_once(self, memory_store):
        first = ensure_default_problem(memory_store)
        second = ensure_default_problem(memory_store)
        assert len(first) == 1
        assert first[0]["title"] == DEFAULT_PROBLEM["title"]
        assert [p["id"] for p in second] == [first[0]["id"]]

    @pytest.mark.parametrize("raw", ["not json", '{"a": 1}'])
    def test_unreadable_bank_raises_and_is_kept(self, memory_store, raw):
        memory_store.set("math_tutor_problems", raw)
        with pytest.raises(ProblemBankUnreadable):
            list_problems(memory_store)
        with pytest.raises(ProblemBankUnreadable):
            list_categories(memory_store)
        with pytest.raises(ProblemBankUnreadable):
            create_problem(memory_store, {"title": "t", "content": "c"})
        assert memory_store.get("math_tutor_problems") == raw

    def test_image_to_data_url_guesses_type_from_name(self):
        upload = io.BytesIO(b"abc")
        upload.name = "a.jpg"
        assert image_to_data_url(upload).startswith("data:image/jpeg;base64,")
