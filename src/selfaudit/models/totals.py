"""Risk totals data models."""

from __future__ import annotations

from enum import Enum
from typing import Callable, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class RowStatus(str, Enum):
    UNMITIGATED = "Unmitigated"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


class LikeCell(BaseModel):
    """One heatmap cell of the severity x likelihood matrix."""

    adjusted: float = 0.0
    max: float = 0.0
    count: int = 0


class RiskTableRow(BaseModel):
    id: int
    finding: str
    severity_label: str
    sev_score: int
    likelihood_label: str
    like_score: int
    mitigation_label: str
    mit_factor: float
    formula: str
    status: RowStatus


def _severity_map(factory: Callable[[], T]) -> dict[str, T]:
    return {sev: factory() for sev in ("critical", "high", "medium", "low")}


def _mitigation_counts() -> dict[str, int]:
    return {"none": 0, "partial": 0, "full": 0}


def _like_cells() -> dict[str, LikeCell]:
    return {
        like: LikeCell()
        for like in ("rare", "unlikely", "possible", "likely", "very likely")
    }


class RiskTotals(BaseModel):
    """Aggregate derived strictly from a list of findings.

    ``overall_pct`` is the residual risk (lower is better);
    ``posture_score`` is its complement (higher is better).
    """

    total_adjusted: float = 0.0
    total_max: float = 0.0
    overall_pct: int = 0
    posture_score: int = 100
    by_severity_adjusted: dict[str, float] = Field(
        default_factory=lambda: {s: 0.0 for s in ("critical", "high", "medium", "low", "info")}
    )
    counts_by_severity: dict[str, int] = Field(
        default_factory=lambda: {s: 0 for s in ("critical", "high", "medium", "low", "info")}
    )
    by_sev_mit_counts: dict[str, dict[str, int]] = Field(
        default_factory=lambda: _severity_map(_mitigation_counts)
    )
    by_sev_like: dict[str, dict[str, LikeCell]] = Field(
        default_factory=lambda: _severity_map(_like_cells)
    )
    table_rows: list[RiskTableRow] = Field(default_factory=list)
