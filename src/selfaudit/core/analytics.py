"""Analytics builder: composes findings and totals into the persisted audit shape.

Two construction modes share one scoring path (``compute_risk_totals``):

- markdown: findings parsed from the validated generator markdown.
- deterministic: findings from the baseline builder; the generator markdown
  is kept only as narrative and never re-scored.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from ..models.analytics import (
    AnalyticsMode,
    AuditAnalytics,
    BuiltAnalytics,
    RecommendationRow,
    SeverityCounts,
)
from ..models.finding import Finding, Severity
from ..models.totals import RiskTotals
from ..utils.text import strip_leading_icons
from .mappers import status_from_mitigation, to_db_severity
from .parser import parse_findings, strip_tags
from .totals import compute_risk_totals
from .validator import validate_and_fix_markdown


def clean_title(text: str) -> str:
    """Recommendation title: finding text without tags or leading icons."""
    return strip_leading_icons(strip_tags(str(text or "")))


def to_recommendation_rows(findings: Iterable[Finding], source: str = "ai_md") -> list[RecommendationRow]:
    """One row per rated finding; info and unknown severities are skipped."""
    rows: list[RecommendationRow] = []
    for f in findings:
        if f.severity in (Severity.INFO, Severity.UNKNOWN):
            continue
        rows.append(RecommendationRow(
            title=clean_title(f.text),
            severity=to_db_severity(f.severity.value),
            status=status_from_mitigation(f.mitigation),
            meta={"source": source, "likelihood": f.likelihood.value},
        ))
    return rows


def severity_counts(totals: RiskTotals) -> SeverityCounts:
    c = totals.counts_by_severity
    return SeverityCounts(
        critical=c.get("critical", 0),
        high=c.get("high", 0),
        medium=c.get("medium", 0),
        low=c.get("low", 0),
    )


def summary_sentence(rows: list[RecommendationRow], counts: SeverityCounts, score: int) -> str:
    n = len(rows)
    return (
        f"Found {n} recommendation{'' if n == 1 else 's'} "
        f"({counts.critical} critical, {counts.high} high, {counts.medium} medium, {counts.low} low). "
        f"Posture score: {score}/100."
    )


def _build(
    mode: AnalyticsMode,
    findings: list[Finding],
    summary_md: str,
    source: str,
    warnings: list[str],
    ai_findings_count: Optional[int],
    extras: Optional[dict[str, Any]],
) -> BuiltAnalytics:
    totals = compute_risk_totals(findings)
    counts = severity_counts(totals)
    rows = to_recommendation_rows(findings, source=source)

    analytics = AuditAnalytics(
        mode=mode,
        risk_score=totals.posture_score,
        overall_pct=totals.overall_pct,
        by_severity=counts,
        mitigation=totals.by_sev_mit_counts,
        by_sev_like=totals.by_sev_like,
        by_severity_adjusted=totals.by_severity_adjusted,
        totals={"adjusted": totals.total_adjusted, "max": totals.total_max},
        summary=summary_sentence(rows, counts, totals.posture_score),
        summary_md=summary_md,
        recommendations=rows,
        validation_warnings=warnings,
        ai_findings_count=ai_findings_count,
        extras=dict(extras or {}),
    )
    return BuiltAnalytics(
        score=totals.posture_score,
        overall_pct=totals.overall_pct,
        counts=counts,
        analytics=analytics,
        findings=findings,
        totals=totals,
    )


def build_analytics_from_markdown(
    markdown: Optional[str],
    extras: Optional[dict[str, Any]] = None,
) -> BuiltAnalytics:
    """Best-effort analytics scored from generator markdown.

    The markdown is untrusted, so it always goes through the validator first;
    the normalized text is what gets stored and parsed.
    """
    result = validate_and_fix_markdown(markdown)
    findings = parse_findings(result.output)
    return _build(
        AnalyticsMode.MARKDOWN,
        findings,
        summary_md=result.output,
        source="ai_md",
        warnings=result.warnings,
        ai_findings_count=len(findings),
        extras=extras,
    )


def build_analytics_deterministic(
    baseline_findings: Iterable[Finding],
    markdown_from_llm: Optional[str] = "",
    extras: Optional[dict[str, Any]] = None,
) -> BuiltAnalytics:
    """Analytics scored only from baseline findings.

    Generator markdown, when present, is normalized and kept as narrative;
    its bullets are counted but never scored.
    """
    summary_md = ""
    warnings: list[str] = []
    ai_count = 0
    if markdown_from_llm and markdown_from_llm.strip():
        result = validate_and_fix_markdown(markdown_from_llm)
        summary_md = result.output
        warnings = result.warnings
        ai_count = len(parse_findings(summary_md))

    return _build(
        AnalyticsMode.DETERMINISTIC,
        list(baseline_findings),
        summary_md=summary_md,
        source="baseline",
        warnings=warnings,
        ai_findings_count=ai_count,
        extras=extras,
    )
