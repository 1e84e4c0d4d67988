"""Audit analytics and recommendation row models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .finding import Finding
from .totals import LikeCell, RiskTotals


class RecStatus(str, Enum):
    OPEN = "open"
    PARTIAL = "partial"
    IMPLEMENTED = "implemented"


class AnalyticsMode(str, Enum):
    MARKDOWN = "markdown"
    DETERMINISTIC = "deterministic"


class RecommendationRow(BaseModel):
    title: str
    severity: str
    status: RecStatus
    rationale: Optional[str] = None
    meta: dict[str, Any] = {}


class SeverityCounts(BaseModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low


class AuditAnalytics(BaseModel):
    """The persisted analytics shape for one audit run."""

    mode: AnalyticsMode
    risk_score: int
    overall_pct: int
    by_severity: SeverityCounts
    mitigation: dict[str, dict[str, int]]
    by_sev_like: dict[str, dict[str, LikeCell]]
    by_severity_adjusted: dict[str, float]
    totals: dict[str, float]
    summary: str
    summary_md: str
    recommendations: list[RecommendationRow] = []
    validation_warnings: list[str] = []
    ai_findings_count: Optional[int] = None
    extras: dict[str, Any] = Field(default_factory=dict)


class BuiltAnalytics(BaseModel):
    score: int
    overall_pct: int
    counts: SeverityCounts
    analytics: AuditAnalytics
    findings: list[Finding]
    totals: RiskTotals
