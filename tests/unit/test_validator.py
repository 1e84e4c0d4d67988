"""Tests for core/validator.py."""

from __future__ import annotations

from selfaudit.core.parser import parse_findings
from selfaudit.core.validator import (
    DEFAULT_RECOMMENDATION,
    DEFAULT_SUMMARY,
    EMPTY_INPUT_WARNING,
    MAX_RECOMMENDATIONS,
    RECOMMENDATION_LIMIT,
    SKELETON,
    SUMMARY_LIMIT,
    validate_and_fix_markdown,
)
from selfaudit.models.finding import Likelihood, Mitigation, Severity

EXPECTED_SKELETON = "\n".join([
    "# 🧾 Audit Summary",
    "This summary was auto-generated from the provided answers and findings.",
    "",
    "## 🛑 Critical Severity",
    "_No significant critical issues found._",
    "",
    "## 🚨 High Severity",
    "_No significant high issues found._",
    "",
    "## ⚠️ Medium Severity",
    "_No significant medium issues found._",
    "",
    "## 🟡 Low Severity",
    "_No significant low issues found._",
    "",
    "## ✅ Tailored Actionable Recommendations",
    "- ✅ Review access controls, logging/monitoring, and dependency hygiene.",
])


class TestEmptyInput:
    def test_empty_string_yields_skeleton(self):
        result = validate_and_fix_markdown("")
        assert result.output == EXPECTED_SKELETON
        assert result.warnings == [EMPTY_INPUT_WARNING]

    def test_whitespace_and_none(self):
        assert validate_and_fix_markdown("   \n\t\n").output == SKELETON
        assert validate_and_fix_markdown(None).warnings == ["Markdown was empty; created a minimal skeleton."]

    def test_skeleton_is_stable(self):
        result = validate_and_fix_markdown(SKELETON)
        assert result.output == SKELETON
        assert result.warnings == []


class TestNormalization:
    def test_messy_document(self, messy_markdown: str):
        result = validate_and_fix_markdown(messy_markdown)
        assert result.output == "\n".join([
            "# 🧾 Audit Summary",
            "Audit Summary preface text line",
            "",
            "## 🛑 Critical Severity",
            "- 🛑 Private key stored in frontend bundle [Likelihood: Likely] [Mitigation: None]",
            "",
            "## 🚨 High Severity",
            "- 🔴 Missing reentrancy guard [Likelihood: Very Likely] [Mitigation: Partial]",
            "- 🔴 Admin role unchecked on withdraw path [Likelihood: Possible] [Mitigation: None]",
            "",
            "## ⚠️ Medium Severity",
            "- 🟠 Oracle price unvalidated [Likelihood: Possible] [Mitigation: Full]",
            "",
            "## 🟡 Low Severity",
            "_No significant low issues found._",
            "",
            "## ✅ Tailored Actionable Recommendations",
            "- ✅ Add a timelock",
        ])
        assert result.warnings == [
            "Merged multi-line bullet in High section.",
            "Added missing Likelihood tag in Critical section.",
            "Fixed/added Mitigation tag in Critical section.",
            "Fixed/added Mitigation tag in High section.",
            "Added missing Likelihood tag in Medium section.",
        ]

    def test_default_likelihood_per_severity(self):
        md = "## Critical\n- a\n## High\n- b\n## Medium\n- c\n## Low\n- d\n## Recommendations\n- r\n"
        findings = parse_findings(validate_and_fix_markdown(md).output)
        assert [(f.severity, f.likelihood) for f in findings] == [
            (Severity.CRITICAL, Likelihood.LIKELY),
            (Severity.HIGH, Likelihood.LIKELY),
            (Severity.MEDIUM, Likelihood.POSSIBLE),
            (Severity.LOW, Likelihood.UNLIKELY),
        ]
        assert all(f.mitigation == Mitigation.NONE for f in findings)

    def test_invalid_mitigation_replaced(self):
        result = validate_and_fix_markdown("## High\n- Issue [Likelihood: Rare] [Mitigation: sort of]\n")
        assert "- 🔴 Issue [Likelihood: Rare] [Mitigation: None]" in result.output
        assert "[Mitigation: sort of]" not in result.output
        assert "Fixed/added Mitigation tag in High section." in result.warnings

    def test_loose_mitigation_wording_kept(self):
        md = (
            "## High\n"
            "- Issue [Likelihood: Likely] [Mitigation: Partial mitigated]\n"
            "- Other [Likelihood: Likely] [Mitigation: full mitigated]\n"
            "- Third [Likelihood: Likely] [Mitigation: no  mitigation]\n"
        )
        result = validate_and_fix_markdown(md)
        assert "- 🔴 Issue [Likelihood: Likely] [Mitigation: Partial]" in result.output
        assert "- 🔴 Other [Likelihood: Likely] [Mitigation: Full]" in result.output
        assert "- 🔴 Third [Likelihood: Likely] [Mitigation: None]" in result.output
        assert "Fixed/added Mitigation tag in High section." not in result.warnings

    def test_tag_order_is_canonical(self):
        result = validate_and_fix_markdown("## Low\n- Issue [Mitigation: Full] [Likelihood: Rare]\n")
        assert "- 🟡 Issue [Likelihood: Rare] [Mitigation: Full]" in result.output

    def test_first_tag_wins_and_duplicates_removed(self):
        md = "## Critical\n- Reentrancy [Likelihood: Likely] [likelihood: Very Likely] [Mitigation: None]\n"
        result = validate_and_fix_markdown(md)
        assert "- 🛑 Reentrancy [Likelihood: Likely] [Mitigation: None]" in result.output
        assert result.output.count("[Likelihood:") == 1

    def test_leading_icons_not_duplicated(self):
        result = validate_and_fix_markdown("## High\n- 🚨 🔴 Weak auth [Likelihood: Likely] [Mitigation: None]\n")
        assert "- 🔴 Weak auth [Likelihood: Likely]" in result.output
        assert "🔴 🔴" not in result.output

    def test_empty_bullet_dropped(self):
        result = validate_and_fix_markdown("## Medium\n- 🟠 [Likelihood: Likely]\n## Recommendations\n- r\n")
        assert "_No significant medium issues found._" in result.output
        assert "Dropped empty bullet in Medium section." in result.warnings

    def test_section_order_enforced(self):
        md = "## Recommendations\n- r\n## Low\n- l\n## Critical\n- c\n# Audit Summary\nText.\n"
        output = validate_and_fix_markdown(md).output
        positions = [
            output.index("Audit Summary"),
            output.index("Critical Severity"),
            output.index("High Severity"),
            output.index("Medium Severity"),
            output.index("Low Severity"),
            output.index("Tailored Actionable Recommendations"),
        ]
        assert positions == sorted(positions)


class TestUnrecognisedHeadings:
    def test_informational_bullets_dropped(self):
        md = (
            "# Audit Summary\nok\n"
            "## Low\n- Floating pragma [Likelihood: Rare] [Mitigation: None]\n"
            "## ℹ️ Informational\n- Compiler version pinned\n"
        )
        result = validate_and_fix_markdown(md)
        assert "Compiler version pinned" not in result.output
        assert "Dropped 1 bullet(s) under unrecognised heading 'ℹ️ Informational'." in result.warnings

        findings = parse_findings(result.output)
        assert len(findings) == 1
        assert findings[0].severity == Severity.LOW

    def test_heading_closes_previous_section(self):
        md = (
            "# Audit Summary\nok\n"
            "## Critical\n- Key leak [Likelihood: Likely] [Mitigation: None]\n"
            "## Notes\n- First note\n- Second note\nSome prose\n"
            "## High\n- Weak auth [Likelihood: Likely] [Mitigation: None]\n"
        )
        result = validate_and_fix_markdown(md)
        assert "First note" not in result.output
        assert "Some prose" not in result.output
        assert "- 🔴 Weak auth [Likelihood: Likely] [Mitigation: None]" in result.output
        assert "Dropped 2 bullet(s) under unrecognised heading 'Notes'." in result.warnings
        assert [f.severity for f in parse_findings(result.output)] == [Severity.CRITICAL, Severity.HIGH]

    def test_title_prose_kept_as_summary(self):
        result = validate_and_fix_markdown("# Security Review\nIntro text.\n## Critical\n- Key leak\n")
        assert "# 🧾 Audit Summary\nIntro text." in result.output
        assert not any(w.startswith("Dropped") for w in result.warnings)
        assert "Missing summary; inserted a generic summary." not in result.warnings

    def test_prose_after_sections_not_summary(self):
        md = "## Critical\n- Key leak\n## Appendix\nLong trailing notes.\n"
        result = validate_and_fix_markdown(md)
        assert "Long trailing notes." not in result.output
        assert "Missing summary; inserted a generic summary." in result.warnings

    def test_second_pass_clean(self):
        md = "## High\n- Weak auth\n## Informational\n- Pinned compiler\n"
        first = validate_and_fix_markdown(md)
        second = validate_and_fix_markdown(first.output)
        assert second.output == first.output
        assert second.warnings == []


class TestSummary:
    def test_missing_summary(self):
        result = validate_and_fix_markdown("## High\n- Issue [Likelihood: Likely] [Mitigation: None]\n")
        assert DEFAULT_SUMMARY in result.output
        assert "Missing summary; inserted a generic summary." in result.warnings

    def test_long_summary_truncated(self):
        long_text = "word " * 200
        result = validate_and_fix_markdown(f"# Audit Summary\n{long_text}\n## Recommendations\n- r\n")
        summary_line = result.output.split("\n")[1]
        assert len(summary_line) <= SUMMARY_LIMIT
        assert summary_line.endswith("…")
        assert "Summary was long; truncated to ~450 characters." in result.warnings

    def test_multiline_summary_joined(self):
        result = validate_and_fix_markdown("# 🧾 Audit Summary\nFirst line.\nSecond line.\n")
        assert result.output.split("\n")[1] == "First line. Second line."


class TestRecommendations:
    def test_missing_recommendations(self):
        result = validate_and_fix_markdown("# Audit Summary\nFine.\n")
        assert f"- ✅ {DEFAULT_RECOMMENDATION}" in result.output
        assert "Missing recommendations; inserted a default action item." in result.warnings

    def test_truncated(self):
        result = validate_and_fix_markdown("## Recommendations\n- " + "a" * 300 + "\n")
        rec_line = result.output.split("\n")[-1]
        assert len(rec_line[len("- ✅ "):]) <= RECOMMENDATION_LIMIT
        assert rec_line.endswith("…")
        assert "Recommendation truncated to 220 characters." in result.warnings

    def test_capped(self):
        bullets = "\n".join(f"- Action {i}" for i in range(20))
        result = validate_and_fix_markdown(f"## Recommendations\n{bullets}\n")
        rec_lines = [l for l in result.output.split("\n") if l.startswith("- ✅ ")]
        assert len(rec_lines) == MAX_RECOMMENDATIONS
        assert rec_lines[-1] == "- ✅ Action 11"
        assert "Recommendations capped at 12 items." in result.warnings

    def test_tags_stripped(self):
        result = validate_and_fix_markdown("## Recommendations\n- Rotate keys [Mitigation: None]\n")
        assert result.output.endswith("- ✅ Rotate keys")


class TestIdempotence:
    def test_second_pass_unchanged(self, messy_markdown: str):
        first = validate_and_fix_markdown(messy_markdown)
        second = validate_and_fix_markdown(first.output)
        assert second.output == first.output
        assert second.warnings == []

    def test_truncated_content_stable(self):
        md = "# Audit Summary\n" + "x " * 400 + "\n## Recommendations\n- " + "y" * 400 + "\n"
        first = validate_and_fix_markdown(md).output
        second = validate_and_fix_markdown(first)
        assert second.output == first
        assert second.warnings == []

    def test_findings_survive_normalization(self, scenario_markdown: str):
        before = parse_findings(scenario_markdown)
        after = parse_findings(validate_and_fix_markdown(scenario_markdown).output)
        assert after == before
