"""Questionnaire and control evaluation data models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .finding import Severity


class UserType(str, Enum):
    DEVELOPER = "developer"
    ORGANIZATION = "organization"


class QuestionType(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class Question(BaseModel):
    question: str
    options: list[str] = []
    type: QuestionType = QuestionType.SINGLE
    section: str = ""


class ControlState(str, Enum):
    YES = "yes"
    PARTIAL = "partial"
    NO = "no"
    EXCLUDE = "exclude"
    CONTRADICTION = "contradiction"
    UNMATCHED = "unmatched"


class ControlEvaluation(BaseModel):
    """Outcome of matching one answered question against the control rules."""

    question: str
    state: ControlState
    label: Optional[str] = None
    severity: Optional[Severity] = None


class ControlCoverage(BaseModel):
    """How many matched controls are implemented, partial, missing or N/A."""

    answered: int = 0
    matched: int = 0
    implemented: int = 0
    partial: int = 0
    missing: int = 0
    excluded: int = 0
    coverage_percent: float = 0.0
    gaps: list[ControlEvaluation] = []
