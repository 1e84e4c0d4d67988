"""Risk totals engine: weighted residual risk from a list of findings.

adjusted = severity weight x likelihood weight x mitigation factor
max      = severity weight x 5 x 1.0

``overall_pct`` is round(adjusted / max * 100) and ``posture_score`` is
100 - overall_pct, clamped to [0, 100]. With no qualifying findings the
residual risk is 0 and the posture is a perfect 100.
"""

from __future__ import annotations

import math
from typing import Iterable

from ..models.finding import (
    MAX_LIKELIHOOD_SCORE,
    Finding,
    Mitigation,
    Severity,
)
from ..models.totals import RiskTableRow, RiskTotals, RowStatus


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def residual_pct(total_adjusted: float, total_max: float) -> int:
    if total_max <= 0:
        return 0
    return round_half_up(total_adjusted / total_max * 100)


def posture_from_pct(overall_pct: int) -> int:
    return max(0, min(100, 100 - overall_pct))


def _status_for(mitigation: Mitigation) -> RowStatus:
    if mitigation == Mitigation.NONE:
        return RowStatus.UNMITIGATED
    if mitigation == Mitigation.PARTIAL:
        return RowStatus.IN_PROGRESS
    return RowStatus.RESOLVED


def format_formula(sev_score: int, like_score: int, mit_factor: float, adjusted: float) -> str:
    return f"{sev_score} × {like_score} × {mit_factor:g} = {adjusted:.1f}"


def compute_risk_totals(findings: Iterable[Finding]) -> RiskTotals:
    """Compute weighted totals, breakdowns and heatmap matrices in one pass.

    Findings with an unknown severity are skipped entirely. Info findings are
    counted and listed in the table but carry no weight in the totals.
    """
    totals = RiskTotals()
    row_id = 1

    for f in findings:
        sev = f.severity
        sev_score = sev.weight
        if sev_score is None:
            continue

        like_score = f.likelihood.weight
        mit_factor = f.mitigation.factor
        adjusted = sev_score * like_score * mit_factor
        max_for_finding = sev_score * MAX_LIKELIHOOD_SCORE * 1.0

        totals.counts_by_severity[sev.value] += 1

        if sev != Severity.INFO:
            totals.total_adjusted += adjusted
            totals.total_max += max_for_finding
            totals.by_severity_adjusted[sev.value] += adjusted
            totals.by_sev_mit_counts[sev.value][f.mitigation.value] += 1
            cell = totals.by_sev_like[sev.value][f.likelihood.value]
            cell.adjusted += adjusted
            cell.max += max_for_finding
            cell.count += 1

        totals.table_rows.append(RiskTableRow(
            id=row_id,
            finding=f.text,
            severity_label=sev.label,
            sev_score=sev_score,
            likelihood_label=f.likelihood.label,
            like_score=like_score,
            mitigation_label=f.mitigation.label,
            mit_factor=mit_factor,
            formula=format_formula(sev_score, like_score, mit_factor, adjusted),
            status=_status_for(f.mitigation),
        ))
        row_id += 1

    totals.overall_pct = residual_pct(totals.total_adjusted, totals.total_max)
    totals.posture_score = posture_percent(totals)
    return totals


def posture_percent(totals: RiskTotals) -> int:
    """Posture score (0-100, higher is better) for a set of totals."""
    if totals.total_max <= 0:
        return 100
    return posture_from_pct(residual_pct(totals.total_adjusted, totals.total_max))
