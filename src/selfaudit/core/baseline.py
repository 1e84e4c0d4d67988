"""Deterministic baseline findings derived only from questionnaire answers.

This is the audit's ground-truth score: every answered question is matched
against an ordered list of control rules (first match wins), the selected
options are reduced to a control state, and each gap becomes a finding.
No generated text is involved, so the same answers always score the same.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Union

from ..models.finding import Finding, Likelihood, Mitigation, Severity
from ..models.questions import ControlCoverage, ControlEvaluation, ControlState, UserType
from ..models.totals import RiskTotals
from .totals import compute_risk_totals

Responses = Mapping[str, Iterable[str]]

NA_OPTIONS = {
    "n/a",
    "not applicable (n/a)",
    "not required (n/a)",
    "not implemented (n/a)",
    "not upgradeable / no self-destruct (n/a)",
    "not using upgradeable contracts (n/a)",
}
UPGRADEABLE_NA = "not using upgradeable contracts (n/a)"

# Global red flag: at least this many applicable answers, this share of them "No".
ESCALATION_MIN_APPLICABLE = 5
ESCALATION_NO_RATIO = 0.8
ESCALATION_TEXT = "Widespread absence of baseline controls across the program."

CONTRADICTION_NOTE = " (conflicting answers detected; auditor review needed)"


def _normalize_values(values: Optional[Iterable[str]]) -> list[str]:
    return [str(v).strip().lower() for v in (values or [])]


def single_control(values: Optional[Iterable[str]]) -> ControlState:
    """Reduce a Yes/Partial/No/N-A answer to a control state.

    More than one of yes/partial/no, or N/A next to any of them, is a
    contradiction. Nothing recognisable selected is treated as N/A.
    """
    v = _normalize_values(values)
    has_yes = any(x.startswith("yes") for x in v)
    has_partial = any(x.startswith("partial") for x in v)
    has_no = any(x == "no" for x in v)
    has_na = any(x in NA_OPTIONS for x in v)

    positive = int(has_yes) + int(has_partial) + int(has_no)
    if positive > 1 or (has_na and positive > 0):
        return ControlState.CONTRADICTION
    if has_yes:
        return ControlState.YES
    if has_partial:
        return ControlState.PARTIAL
    if has_no:
        return ControlState.NO
    return ControlState.EXCLUDE


def upgradeable_control(values: Optional[Iterable[str]]) -> ControlState:
    """Upgradeable proxies: "Not using upgradeable contracts" alone is N/A."""
    v = _normalize_values(values)
    if UPGRADEABLE_NA not in v:
        return single_control(values)
    others = [x for x in v if x != UPGRADEABLE_NA]
    return ControlState.EXCLUDE if not others else ControlState.CONTRADICTION


def crypto_control(values: Optional[Iterable[str]]) -> ControlState:
    """Cryptography inventory: only an explicit "None" is a gap."""
    v = _normalize_values(values)
    if "none" in v:
        return ControlState.NO
    if not v:
        return ControlState.EXCLUDE
    return ControlState.YES


@dataclass(frozen=True)
class ControlRule:
    pattern: re.Pattern
    severity: Severity
    label: str
    handler: Callable[[Optional[Iterable[str]]], ControlState] = single_control

    def matches(self, question: str) -> bool:
        return bool(self.pattern.search(question))


def _rule(pattern: str, severity: Severity, label: str, handler=single_control) -> ControlRule:
    return ControlRule(re.compile(pattern, re.IGNORECASE), severity, label, handler)


CONTROL_RULES: tuple[ControlRule, ...] = (
    # Critical: keys, admin, governance, incident response, disclosure
    _rule(r"multisig|hsm|hardware\s*security\s*module|treasury|administrative",
          Severity.CRITICAL, "Admin/treasury protections (multisig/HSM)"),
    _rule(r"keys?\s+rotated|access\s+revocation|vault|kms",
          Severity.CRITICAL, "Key lifecycle & secret vault"),
    _rule(r"least\s*privilege|roles?\b.*(auditable)?|access\s+control",
          Severity.CRITICAL, "Least privilege & role separation"),
    _rule(r"incident\s+response", Severity.CRITICAL, "Incident response plan"),
    _rule(r"customer.*(disclosure|reporting)\s+channel|standardized\s+customer\s+disclosure",
          Severity.CRITICAL, "Customer disclosure channel"),

    # High: upgrades, secure protocols/oracles, emergency pause, review and tests
    _rule(r"upgrade(able)?\s*pro( xy|xies)?|initializer\s*guard|uups|transparent",
          Severity.HIGH, "Upgradeable proxy controls", upgradeable_control),
    _rule(r"secure\s+protocols|tls|https|secure\s+oracles?",
          Severity.HIGH, "Secure communications/oracles"),
    _rule(r"emergency\s+(pause|kill[-\s]*switch|circuit)",
          Severity.HIGH, "Emergency pause/kill-switch"),
    _rule(r"review.*(independent|coverage)|unit/integration\s+tests|coverage",
          Severity.HIGH, "Dual review & test coverage"),

    # Medium: monitoring, alerting, logs, change management, governance, analysis
    _rule(r"on[-\s]*chain\s+activity\s+monitored|anomal(y|ies)|mev|exploit\s+signatures?",
          Severity.MEDIUM, "On-chain anomaly monitoring"),
    _rule(r"alerts?\s+configured|webhooks?|slack|discord|pagerduty|runbooks?",
          Severity.MEDIUM, "Automated alerting with runbooks"),
    _rule(r"logs?|telemetry|observability|forensic|retention|integrity\s+protections?",
          Severity.MEDIUM, "Log retention & integrity for forensics"),
    _rule(r"change\s+management|approvals?|rollback",
          Severity.MEDIUM, "Change management for upgrades/releases"),
    _rule(r"governance.*(documented|auditable)|decision\s+records|proposals?",
          Severity.MEDIUM, "Governance documentation & auditability"),
    _rule(r"static\s+analysis|sast|formal\s+verification",
          Severity.MEDIUM, "Static analysis / Formal verification"),

    # Medium: developer-side contract safety
    _rule(r"re-entrancy", Severity.MEDIUM, "Re-entrancy protections"),
    _rule(r"overflow|underflow|safemath", Severity.MEDIUM, "Overflow/Underflow protections"),
    _rule(r"access\s+modifiers?|encapsulated", Severity.MEDIUM, "Access modifiers & encapsulation"),
    _rule(r"randomness|vrf|commitments", Severity.MEDIUM, "Secure randomness"),
    _rule(r"gas\s+limit.*dos|bounded\s+loops|pull.*push", Severity.MEDIUM, "DoS by gas mitigation"),
    _rule(r"economic\s+attack|flash\s+loan|oracle\s+manipulation",
          Severity.MEDIUM, "Economic attack analysis"),
    _rule(r"front[-\s]*running|reordering", Severity.MEDIUM, "Front-running/reordering testing"),

    # Low: scope, docs, front-end UX, dependencies, standards
    _rule(r"scope.*defined", Severity.LOW, "Scope definition"),
    _rule(r"documentation.*(recommendations|implementation)|comprehensive\s+documentation",
          Severity.LOW, "Security documentation"),
    _rule(r"front[-\s]*end.*(phishing|approvals?|manipulation)",
          Severity.LOW, "Front-end user protections"),
    _rule(r"dependencies?|libraries?.*(vetted|updated)", Severity.LOW, "Dependencies vetted & updated"),
    _rule(r"token\s+standards?|interoperability", Severity.LOW, "Standards/interoperability compliance"),

    # Cryptography inventory, penalised only when "None" is selected
    _rule(r"cryptographic.*techniques|cryptographic.*concepts",
          Severity.MEDIUM, "Cryptography primitives in use", crypto_control),
)


def match_rule(question: str) -> Optional[ControlRule]:
    for rule in CONTROL_RULES:
        if rule.matches(question):
            return rule
    return None


def evaluate_control(question: str, values: Optional[Iterable[str]]) -> ControlEvaluation:
    """Evaluate one answered question; unmatched questions are informational."""
    rule = match_rule(question)
    if rule is None:
        return ControlEvaluation(question=question, state=ControlState.UNMATCHED)
    return ControlEvaluation(
        question=question,
        state=rule.handler(values),
        label=rule.label,
        severity=rule.severity,
    )


def evaluate_controls(responses: Optional[Responses]) -> list[ControlEvaluation]:
    return [evaluate_control(q, list(v or [])) for q, v in (responses or {}).items()]


def likelihood_for(severity: Severity, state: ControlState) -> Likelihood:
    """Missing controls on severe rules are more likely to be exploited."""
    missing = state == ControlState.NO
    if severity == Severity.CRITICAL:
        return Likelihood.VERY_LIKELY if missing else Likelihood.LIKELY
    if severity == Severity.HIGH:
        return Likelihood.LIKELY if missing else Likelihood.POSSIBLE
    return Likelihood.POSSIBLE


def finding_for(evaluation: ControlEvaluation) -> Optional[Finding]:
    """Turn a control gap into a finding; implemented, N/A and unmatched yield None."""
    state = evaluation.state
    if state not in (ControlState.NO, ControlState.PARTIAL, ControlState.CONTRADICTION):
        return None

    if state == ControlState.NO:
        prefix = "Control missing"
        mitigation = Mitigation.NONE
    else:
        prefix = "Control partially implemented"
        mitigation = Mitigation.PARTIAL

    note = CONTRADICTION_NOTE if state == ControlState.CONTRADICTION else ""
    return Finding(
        severity=evaluation.severity,
        likelihood=likelihood_for(evaluation.severity, state),
        mitigation=mitigation,
        text=f"{prefix}: {evaluation.label} — {evaluation.question}{note}",
    )


def _needs_escalation(entries: list[tuple[str, list[str]]], has_findings: bool) -> bool:
    # Applicability is judged with the generic single-choice reading of every
    # answer, matched or not. With no findings at all, every answer counts.
    states = [single_control(values) for _, values in entries]
    if has_findings:
        applicable = sum(1 for s in states if s != ControlState.EXCLUDE)
    else:
        applicable = len(entries)
    no_count = sum(1 for s in states if s == ControlState.NO)
    return (
        applicable >= ESCALATION_MIN_APPLICABLE
        and no_count / max(1, applicable) >= ESCALATION_NO_RATIO
    )


def build_baseline_findings(
    responses: Optional[Responses],
    user_type: Union[UserType, str] = UserType.DEVELOPER,
) -> list[Finding]:
    """Build deterministic findings from answers, in answer order.

    ``user_type`` does not change the rules today; both questionnaires share
    one rule list.
    """
    entries = [(q, list(v or [])) for q, v in (responses or {}).items()]
    findings: list[Finding] = []

    for question, values in entries:
        finding = finding_for(evaluate_control(question, values))
        if finding is not None:
            findings.append(finding)

    if _needs_escalation(entries, bool(findings)):
        findings.append(Finding(
            severity=Severity.CRITICAL,
            likelihood=Likelihood.VERY_LIKELY,
            mitigation=Mitigation.NONE,
            text=ESCALATION_TEXT,
        ))

    return findings


def control_coverage(evaluations: Iterable[ControlEvaluation]) -> ControlCoverage:
    """Summarise which matched controls are in place and which are gaps."""
    coverage = ControlCoverage()
    for ev in evaluations:
        coverage.answered += 1
        if ev.state == ControlState.UNMATCHED:
            continue
        coverage.matched += 1
        if ev.state == ControlState.YES:
            coverage.implemented += 1
        elif ev.state == ControlState.EXCLUDE:
            coverage.excluded += 1
        elif ev.state == ControlState.NO:
            coverage.missing += 1
            coverage.gaps.append(ev)
        else:
            coverage.partial += 1
            coverage.gaps.append(ev)

    applicable = coverage.matched - coverage.excluded
    if applicable > 0:
        coverage.coverage_percent = round(coverage.implemented / applicable * 100, 1)
    return coverage


@dataclass
class BaselineSummary:
    findings: list[Finding]
    totals: RiskTotals
    score: int
    overall_pct: int
    coverage: ControlCoverage


def summarize_baseline(
    responses: Optional[Responses],
    user_type: Union[UserType, str] = UserType.DEVELOPER,
) -> BaselineSummary:
    """Baseline findings plus their totals, posture score and control coverage."""
    findings = build_baseline_findings(responses, user_type)
    totals = compute_risk_totals(findings)
    return BaselineSummary(
        findings=findings,
        totals=totals,
        score=totals.posture_score,
        overall_pct=totals.overall_pct,
        coverage=control_coverage(evaluate_controls(responses)),
    )
