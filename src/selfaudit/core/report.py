"""Report rendering: canonical findings markdown, risk register and JSON export."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from ..models.analytics import BuiltAnalytics
from ..models.finding import RATED_SEVERITIES, Finding
from ..utils.text import strip_leading_icons, truncate
from .parser import strip_tags
from .validator import (
    DEFAULT_RECOMMENDATION,
    DEFAULT_SUMMARY,
    RECOMMENDATION_LIMIT,
    SUMMARY_LIMIT,
    assemble_document,
)


def render_findings_markdown(
    findings: Iterable[Finding],
    summary: str = "",
    recommendations: Optional[list[str]] = None,
) -> str:
    """Render findings in the canonical audit layout.

    The output parses back to the same rated findings, grouped by severity
    in first-seen order. Info and unknown findings have no section and are
    left out.
    """
    bullets: dict[str, list[str]] = {sev.value: [] for sev in RATED_SEVERITIES}
    for f in findings:
        if f.severity.value not in bullets:
            continue
        text = strip_leading_icons(strip_tags(f.text))
        if not text:
            continue
        bullets[f.severity.value].append(
            f"{text} [Likelihood: {f.likelihood.label}] [Mitigation: {f.mitigation.label}]"
        )

    recs = [truncate(r.strip(), RECOMMENDATION_LIMIT) for r in (recommendations or []) if r and r.strip()]
    summary_text = truncate(" ".join(summary.split()), SUMMARY_LIMIT) if summary else ""
    return assemble_document(summary_text or DEFAULT_SUMMARY, bullets, recs or [DEFAULT_RECOMMENDATION])


def generate_risk_report(built: BuiltAnalytics, project_name: str = "") -> str:
    """Generate a markdown risk register for one analytics run."""
    analytics = built.analytics
    totals = built.totals
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines: list[str] = []
    lines.append("# DApp Security Risk Register")
    lines.append("")
    if project_name:
        lines.append(f"**Project:** {project_name}")
    lines.append(f"**Date:** {timestamp}")
    lines.append(f"**Mode:** {analytics.mode.value}")
    lines.append(f"**Posture score:** {built.score}/100")
    lines.append(f"**Residual risk:** {built.overall_pct}%")
    lines.append("")
    lines.append(analytics.summary)
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Severity | Count | Adjusted | None | Partial | Full |")
    lines.append("|----------|-------|----------|------|---------|------|")
    for sev in RATED_SEVERITIES:
        mit = totals.by_sev_mit_counts[sev.value]
        lines.append(
            f"| {sev.label} | {totals.counts_by_severity[sev.value]} "
            f"| {totals.by_severity_adjusted[sev.value]:.1f} "
            f"| {mit['none']} | {mit['partial']} | {mit['full']} |"
        )
    lines.append(
        f"| **Total** | **{built.counts.total}** | **{totals.total_adjusted:.1f}** "
        f"/ {totals.total_max:.1f} | | | |"
    )
    lines.append("")

    if totals.table_rows:
        lines.append("## Risk Table")
        lines.append("")
        lines.append("| # | Finding | Severity | Likelihood | Mitigation | Score | Status |")
        lines.append("|---|---------|----------|------------|------------|-------|--------|")
        for row in totals.table_rows:
            finding = row.finding.replace("|", "\\|")
            lines.append(
                f"| {row.id} | {finding} | {row.severity_label} | {row.likelihood_label} "
                f"| {row.mitigation_label} | {row.formula} | {row.status.value} |"
            )
        lines.append("")

    if analytics.validation_warnings:
        lines.append("## Validation Warnings")
        lines.append("")
        for warning in analytics.validation_warnings:
            lines.append(f"- {warning}")
        lines.append("")

    lines.append("---")
    lines.append(f"*Generated by selfaudit at {timestamp}*")
    return "\n".join(lines)


def export_analytics_json(built: BuiltAnalytics, path: Path) -> Path:
    """Write the persisted analytics shape to ``path`` as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = built.analytics.model_dump(mode="json")
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
