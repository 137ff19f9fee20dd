"""
Problem bank stored as a JSON list under math_tutor_problems.

A problem is text or an image (base64 data URL), with an optional
explanation (text and/or image) and its knowledge-element taxonomy:
category, grade, unit and difficulty.
"""
import base64
import logging
import mimetypes
from typing import Any, Dict, List, Optional

from mathtutor_console.adapters.django.services.default_config import (
    new_id,
    now_timestamp,
)
from mathtutor_console.adapters.django.services.storage import (
    KeyValueStore,
    read_json,
    write_json,
)
from mathtutor_console.constants import (
    DEFAULT_DIFFICULTY,
    DIFFICULTIES,
    PROBLEMS_KEY,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("title", "content", "category", "grade", "unit")

DEFAULT_PROBLEM = {
    "title": "Snail speed problem",
    "content": (
        "A snail travels 42 m in one hour. At the same speed, how many "
        "meters can it travel in 20 minutes? Choices: (1) 13 m "
        "(2) 13 3/4 m (3) 14 m (4) 14 1/3 m"
    ),
    "category": "Speed and distance",
    "difficulty": "easy",
}


class ProblemNotFound(LookupError):
    """No problem with the given id."""


class ProblemBankUnreadable(ValueError):
    """The stored problem bank is not a JSON list."""


def _load(store: KeyValueStore) -> List[Dict[str, Any]]:
    """Stored problems. Unparseable or non-list values raise."""
    try:
        problems = read_json(store, PROBLEMS_KEY, [])
    except ValueError as e:
        logger.error(f"Failed to parse stored problems key={PROBLEMS_KEY}")
        raise ProblemBankUnreadable(
            f"Stored problem bank is unreadable: {e}"
        ) from e
    if not isinstance(problems, list):
        logger.error(f"Stored problems are not a list key={PROBLEMS_KEY}")
        raise ProblemBankUnreadable("Stored problem bank is not a list.")
    return [p for p in problems if isinstance(p, dict)]


def _save(store: KeyValueStore, problems: List[Dict[str, Any]]) -> None:
    write_json(store, PROBLEMS_KEY, problems)


def _normalize(data: Dict[str, Any], base: Dict[str, Any]) -> Dict[str, Any]:
    problem = dict(base)
    for key in TEXT_FIELDS:
        if key in data:
            problem[key] = (data.get(key) or "").strip()
    for key in ("imageUrl", "explanationImageUrl"):
        if key in data:
            if data.get(key):
                problem[key] = data[key]
            else:
                problem.pop(key, None)
    if "explanationText" in data:
        text = (data.get("explanationText") or "").strip()
        if text:
            problem["explanationText"] = text
        else:
            problem.pop("explanationText", None)
    difficulty = data.get("difficulty", problem.get("difficulty"))
    if difficulty not in DIFFICULTIES:
        difficulty = DEFAULT_DIFFICULTY
    problem["difficulty"] = difficulty
    return problem


def image_to_data_url(uploaded_file) -> str:
    """Encode an uploaded file as a base64 data URL."""
    content_type = getattr(uploaded_file, "content_type", None) or (
        mimetypes.guess_type(getattr(uploaded_file, "name", "") or "")[0]
    ) or "application/octet-stream"
    encoded = base64.b64encode(uploaded_file.read()).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def image_problem_content(filename: str) -> str:
    return f"[Image problem: {filename}]"


def list_problems(
    store: KeyValueStore,
    search: Optional[str] = None,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Filtered problem list. search matches title, content or category
    (case-insensitive); category and difficulty match exactly.
    """
    query = (search or "").strip().lower()
    out = []
    for problem in _load(store):
        if query:
            haystack = (
                (problem.get("title") or "").lower(),
                (problem.get("content") or "").lower(),
                (problem.get("category") or "").lower(),
            )
            if not any(query in text for text in haystack):
                continue
        if category and problem.get("category") != category:
            continue
        if difficulty and problem.get("difficulty") != difficulty:
            continue
        out.append(problem)
    return out


def list_categories(store: KeyValueStore) -> List[str]:
    seen = []
    for problem in _load(store):
        category = problem.get("category")
        if category and category not in seen:
            seen.append(category)
    return seen


def get_problem(store: KeyValueStore, problem_id: str) -> Dict[str, Any]:
    for problem in _load(store):
        if problem.get("id") == problem_id:
            return problem
    raise ProblemNotFound(problem_id)


def create_problem(
    store: KeyValueStore, data: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Add a problem. Title is required, and either content or an image.
    """
    now = now_timestamp()
    problem = _normalize(
        data,
        {
            "id": new_id(),
            "title": "",
            "content": "",
            "category": "",
            "grade": "",
            "unit": "",
            "difficulty": DEFAULT_DIFFICULTY,
            "createdAt": now,
            "updatedAt": now,
        },
    )
    if not problem["title"]:
        raise ValueError("Problem title is required.")
    if not problem["content"] and not problem.get("imageUrl"):
        raise ValueError("Problem content or image is required.")
    problems = _load(store)
    problems.append(problem)
    _save(store, problems)
    logger.info(f"Created problem problem_id={problem['id']}")
    return problem


def update_problem(
    store: KeyValueStore, problem_id: str, data: Dict[str, Any]
) -> Dict[str, Any]:
    problems = _load(store)
    for i, existing in enumerate(problems):
        if existing.get("id") != problem_id:
            continue
        problem = _normalize(data, existing)
        if not problem.get("title"):
            raise ValueError("Problem title is required.")
        problem["updatedAt"] = now_timestamp()
        problems[i] = problem
        _save(store, problems)
        logger.info(f"Updated problem problem_id={problem_id}")
        return problem
    raise ProblemNotFound(problem_id)


def delete_problem(store: KeyValueStore, problem_id: str) -> None:
    problems = _load(store)
    remaining = [p for p in problems if p.get("id") != problem_id]
    if len(remaining) == len(problems):
        raise ProblemNotFound(problem_id)
    _save(store, remaining)
    logger.info(f"Deleted problem problem_id={problem_id}")


def ensure_default_problem(store: KeyValueStore) -> List[Dict[str, Any]]:
    """Seed the sample problem when the bank is empty; return the bank."""
    problems = _load(store)
    if problems:
        return problems
    logger.info("Problem bank empty; seeding sample problem")
    create_problem(store, DEFAULT_PROBLEM)
    return _load(store)
