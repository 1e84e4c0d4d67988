"""Markdown validator: repairs generator output into the canonical audit layout.

Enforces the section order, severity headings, one-line bullets and the
``[Likelihood: X] [Mitigation: Y]`` tags. Every repair is reported as a
warning string; nothing here raises. Validating the output a second time
returns it unchanged with no warnings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel

from ..models.finding import Likelihood, Mitigation, Severity
from ..utils.text import ICON_PREFIX, collapse_whitespace, strip_leading_icons, truncate
from .parser import HEADING, extract_tags, strip_tags

SUMMARY_LIMIT = 450
RECOMMENDATION_LIMIT = 220
MAX_RECOMMENDATIONS = 12

DEFAULT_SUMMARY = "This summary was auto-generated from the provided answers and findings."
DEFAULT_RECOMMENDATION = (
    "Establish a minimal hardening baseline and revisit DApp security posture in 30 days."
)
SKELETON_RECOMMENDATION = "Review access controls, logging/monitoring, and dependency hygiene."
EMPTY_INPUT_WARNING = "Markdown was empty; created a minimal skeleton."

SUMMARY_HEADING = "# \U0001f9fe Audit Summary"
RECS_HEADING = "## ✅ Tailored Actionable Recommendations"
RECS_ICON = "✅"


@dataclass(frozen=True)
class SectionMeta:
    severity: Severity
    title: str
    heading_icon: str
    bullet_icon: str
    default_likelihood: Likelihood

    @property
    def heading(self) -> str:
        return f"## {self.heading_icon} {self.title} Severity"

    @property
    def placeholder(self) -> str:
        return f"_No significant {self.title.lower()} issues found._"


SECTIONS: dict[str, SectionMeta] = {
    "critical": SectionMeta(Severity.CRITICAL, "Critical", "\U0001f6d1", "\U0001f6d1", Likelihood.LIKELY),
    "high": SectionMeta(Severity.HIGH, "High", "\U0001f6a8", "\U0001f534", Likelihood.LIKELY),
    "medium": SectionMeta(Severity.MEDIUM, "Medium", "⚠️", "\U0001f7e0", Likelihood.POSSIBLE),
    "low": SectionMeta(Severity.LOW, "Low", "\U0001f7e1", "\U0001f7e1", Likelihood.UNLIKELY),
}

# Checked in order; the first matching pattern classifies the heading.
SECTION_HEADINGS: list[tuple[str, re.Pattern]] = [
    ("summary", re.compile(r"^#{1,6}\s*.*audit\s*summary.*$", re.IGNORECASE)),
    ("critical", re.compile(rf"^#{{1,6}}\s*{ICON_PREFIX}critical\b", re.IGNORECASE)),
    ("high", re.compile(rf"^#{{1,6}}\s*{ICON_PREFIX}high\b", re.IGNORECASE)),
    ("medium", re.compile(rf"^#{{1,6}}\s*{ICON_PREFIX}medium\b", re.IGNORECASE)),
    ("low", re.compile(rf"^#{{1,6}}\s*{ICON_PREFIX}low\b", re.IGNORECASE)),
    ("recs", re.compile(rf"^#{{1,6}}\s*{ICON_PREFIX}(?:tailored|recommendations|actionable)", re.IGNORECASE)),
]

BULLET = re.compile(r"^(?:[-*•]|\d+\.)\s+(.*)$")

# Looser than the parser's tag so wordings like "Partial mitigated" are kept.
MITIGATION_TAG = re.compile(
    r"\[\s*mitigation\s*:\s*"
    r"(fully?\s*mitigated|full|partially?\s*mitigated|partial|no\s*mitigation|none)\s*\]",
    re.IGNORECASE,
)


class ValidationResult(BaseModel):
    output: str
    warnings: list[str] = []


@dataclass
class _Sections:
    summary: list[str] = field(default_factory=list)
    items: dict[str, list[str]] = field(
        default_factory=lambda: {key: [] for key in ("critical", "high", "medium", "low", "recs")}
    )
    merged: set[str] = field(default_factory=set)
    # (heading text, bullets dropped under it)
    dropped: list[tuple[str, int]] = field(default_factory=list)


def _classify_heading(line: str) -> Optional[str]:
    for key, pattern in SECTION_HEADINGS:
        if pattern.match(line):
            return key
    return None


def _split_sections(markdown: str) -> _Sections:
    """Route every line to the section it belongs to.

    Lines before the first recognised heading are summary preface. Bullets
    are collected per section; an indented non-bullet line directly after a
    bullet is a continuation of that bullet. Any other heading closes the
    current section: its bullets are dropped and counted, and its prose only
    counts as summary while no severity or recommendations section has
    started yet.
    """
    sections = _Sections()
    current: Optional[str] = None
    in_body = False
    continuable = False

    for raw in markdown.split("\n"):
        line = raw.strip()
        key = _classify_heading(line)
        if key is not None:
            current = key
            in_body = in_body or key != "summary"
            continuable = False
            continue
        if HEADING.match(line):
            current = "ignored"
            sections.dropped.append((HEADING.sub("", line), 0))
            continuable = False
            continue

        if current == "ignored":
            if BULLET.match(line):
                heading, count = sections.dropped[-1]
                sections.dropped[-1] = (heading, count + 1)
            elif not in_body:
                sections.summary.append(line)
            continue

        if current is None or current == "summary":
            sections.summary.append(line)
            continue

        bucket = sections.items[current]
        bullet = BULLET.match(line)
        if bullet:
            bucket.append(bullet.group(1))
            continuable = True
        elif line and continuable and raw[:1].isspace():
            bucket[-1] = f"{bucket[-1]} {line}"
            sections.merged.add(current)
        else:
            continuable = False

    return sections


def _normalize_summary(lines: list[str], warnings: list[str]) -> str:
    text = collapse_whitespace(" ".join(l for l in lines if l and not l.startswith("#")))
    if not text:
        warnings.append("Missing summary; inserted a generic summary.")
        return DEFAULT_SUMMARY
    if len(text) > SUMMARY_LIMIT:
        warnings.append(f"Summary was long; truncated to ~{SUMMARY_LIMIT} characters.")
    return truncate(text, SUMMARY_LIMIT)


def _normalize_severity_items(meta: SectionMeta, items: list[str], warnings: list[str]) -> list[str]:
    bullets: list[str] = []
    for item in items:
        content = collapse_whitespace(item)
        likelihood, _ = extract_tags(content)
        tag = MITIGATION_TAG.search(content)
        mitigation = Mitigation.parse(tag.group(1)) if tag else None
        content = strip_leading_icons(strip_tags(content))
        if not content:
            warnings.append(f"Dropped empty bullet in {meta.title} section.")
            continue

        if likelihood is None:
            likelihood = meta.default_likelihood
            warnings.append(f"Added missing Likelihood tag in {meta.title} section.")
        if mitigation is None:
            mitigation = Mitigation.NONE
            warnings.append(f"Fixed/added Mitigation tag in {meta.title} section.")

        bullets.append(f"{content} [Likelihood: {likelihood.label}] [Mitigation: {mitigation.label}]")
    return bullets


def _normalize_recommendations(items: list[str], warnings: list[str]) -> list[str]:
    recs: list[str] = []
    for item in items:
        content = strip_leading_icons(strip_tags(collapse_whitespace(item)))
        if not content:
            continue
        if len(content) > RECOMMENDATION_LIMIT:
            warnings.append(f"Recommendation truncated to {RECOMMENDATION_LIMIT} characters.")
        recs.append(truncate(content, RECOMMENDATION_LIMIT))

    if len(recs) > MAX_RECOMMENDATIONS:
        warnings.append(f"Recommendations capped at {MAX_RECOMMENDATIONS} items.")
        recs = recs[:MAX_RECOMMENDATIONS]
    return recs


def assemble_document(summary: str, severity_bullets: dict[str, list[str]], recs: list[str]) -> str:
    lines = [SUMMARY_HEADING, summary, ""]
    for key, meta in SECTIONS.items():
        lines.append(meta.heading)
        bullets = severity_bullets.get(key) or []
        if bullets:
            lines.extend(f"- {meta.bullet_icon} {b}" for b in bullets)
        else:
            lines.append(meta.placeholder)
        lines.append("")
    lines.append(RECS_HEADING)
    lines.extend(f"- {RECS_ICON} {r}" for r in recs)
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def build_skeleton() -> str:
    """The minimal document returned for empty input."""
    return assemble_document(DEFAULT_SUMMARY, {}, [SKELETON_RECOMMENDATION])


SKELETON = build_skeleton()


def validate_and_fix_markdown(raw: Optional[str]) -> ValidationResult:
    """Normalize arbitrary generator markdown into the canonical layout."""
    text = (raw or "").replace("\r\n", "\n").strip()
    if not text:
        return ValidationResult(output=SKELETON, warnings=[EMPTY_INPUT_WARNING])

    warnings: list[str] = []
    sections = _split_sections(text)

    summary = _normalize_summary(sections.summary, warnings)
    for heading, count in sections.dropped:
        if count:
            warnings.append(f"Dropped {count} bullet(s) under unrecognised heading '{heading}'.")
    for key in SECTIONS:
        if key in sections.merged:
            warnings.append(f"Merged multi-line bullet in {SECTIONS[key].title} section.")
    if "recs" in sections.merged:
        warnings.append("Merged multi-line bullet in Recommendations section.")
    severity_bullets = {
        key: _normalize_severity_items(meta, sections.items[key], warnings)
        for key, meta in SECTIONS.items()
    }
    recs = _normalize_recommendations(sections.items["recs"], warnings)
    if not recs:
        warnings.append("Missing recommendations; inserted a default action item.")
        recs = [DEFAULT_RECOMMENDATION]

    return ValidationResult(output=assemble_document(summary, severity_bullets, recs), warnings=warnings)
