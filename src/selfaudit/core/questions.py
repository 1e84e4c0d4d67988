"""Question catalog loading.

Catalogs ship as YAML under ``selfaudit/data``; a project may point
``audit.catalog`` at its own file with the same shape.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Optional, Union

import yaml

from ..models.questions import Question, UserType


def _catalog_name(user_type: UserType) -> str:
    return f"{user_type.value}_questions.yaml"


def _parse_catalog(content: str) -> list[Question]:
    data = yaml.safe_load(content) or {}
    items = data.get("questions") if isinstance(data, dict) else data
    return [Question(**item) for item in items or [] if isinstance(item, dict) and item.get("question")]


def load_questions(
    user_type: Union[UserType, str],
    catalog_path: Optional[Path] = None,
) -> list[Question]:
    """Load the ordered question list for a user type.

    An override catalog that cannot be read, or lists no questions, falls back to
    the bundled one. Raises ValueError for an unknown user type.
    """
    try:
        kind = UserType(str(getattr(user_type, "value", user_type)).lower())
    except ValueError:
        raise ValueError(f"Unknown user type: {user_type!r}") from None

    if catalog_path and catalog_path.exists():
        try:
            questions = _parse_catalog(catalog_path.read_text(encoding="utf-8-sig"))
            if questions:
                return questions
        except Exception:
            pass

    data_pkg = resources.files("selfaudit.data")
    return _parse_catalog((data_pkg / _catalog_name(kind)).read_text(encoding="utf-8"))


def question_order(user_type: Union[UserType, str]) -> list[str]:
    return [q.question for q in load_questions(user_type)]
