"""Findings parser: extracts severity-tagged bullets from audit markdown."""

from __future__ import annotations

import re
from typing import Optional

from ..models.finding import Finding, Likelihood, Mitigation, Severity
from ..utils.text import collapse_whitespace, strip_leading_icons

HEADING = re.compile(r"^#{1,6}\s*")
BULLET = re.compile(r"^(?:[-*•]|\d+\.)\s+")

LIKELIHOOD_TAG = re.compile(
    r"\[\s*likelihood\s*:\s*(very likely|likely|possible|unlikely|rare)\s*\]",
    re.IGNORECASE,
)
MITIGATION_TAG = re.compile(
    r"\[\s*mitigation\s*:\s*(fully mitigated|full|partially mitigated|partial|none|no mitigation)\s*\]",
    re.IGNORECASE,
)
# Any likelihood/mitigation tag, recognised value or not.
ANY_TAG = re.compile(r"\s*\[\s*(?:likelihood|mitigation)\s*:[^\]]*\]\s*", re.IGNORECASE)


def severity_from_heading(heading: str) -> Optional[Severity]:
    """Classify a heading line; None means it is not a severity section."""
    t = heading.lower()
    if re.search("critical|catastrophic|\U0001f6d1", t):
        return Severity.CRITICAL
    if re.search("\\bhigh\\b|\U0001f534", t):
        return Severity.HIGH
    if re.search("\\bmedium\\b|\U0001f7e0", t):
        return Severity.MEDIUM
    if re.search("\\blow\\b|\U0001f7e1", t):
        return Severity.LOW
    if re.search("info|informational|ℹ", t):
        return Severity.INFO
    return None


def extract_tags(line: str) -> tuple[Optional[Likelihood], Optional[Mitigation]]:
    """Return the first recognised likelihood and mitigation tag values.

    When a bullet carries several tags of one kind, the leftmost one wins.
    """
    like_match = LIKELIHOOD_TAG.search(line)
    mit_match = MITIGATION_TAG.search(line)
    likelihood = Likelihood.parse(like_match.group(1)) if like_match else None
    mitigation = Mitigation.parse(mit_match.group(1)) if mit_match else None
    return likelihood, mitigation


def strip_tags(text: str) -> str:
    return collapse_whitespace(ANY_TAG.sub(" ", text))


def sanitize_bullet(line: str) -> str:
    """Bullet text without list marker, tags or leading icons."""
    text = BULLET.sub("", line.strip(), count=1)
    return strip_leading_icons(strip_tags(text))


def parse_findings(markdown: str) -> list[Finding]:
    """Parse markdown into an ordered list of findings.

    Bullets are only collected under a heading that names a severity; any
    other heading suspends collection until the next severity heading.
    Untagged bullets default to likelihood ``possible`` and mitigation
    ``none``. Malformed input yields an empty list, never an error.
    """
    if not markdown:
        return []

    findings: list[Finding] = []
    current: Optional[Severity] = None

    for raw in markdown.split("\n"):
        line = raw.strip()
        if not line:
            continue

        if HEADING.match(line):
            current = severity_from_heading(line)
            continue

        if current is None or not BULLET.match(line):
            continue

        likelihood, mitigation = extract_tags(line)
        findings.append(Finding(
            severity=current,
            likelihood=likelihood or Likelihood.POSSIBLE,
            mitigation=mitigation or Mitigation.NONE,
            text=sanitize_bullet(line),
        ))

    return findings
