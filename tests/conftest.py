"""Shared fixtures for selfaudit tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

REENTRANCY_Q = "Does the smart contract include mechanisms to prevent re-entrancy attacks?"
INCIDENT_Q = "Is there a documented incident response plan post-deployment?"
PAUSE_Q = "Does the DApp include an emergency pause/stop (circuit breaker) feature?"
CRYPTO_Q = "What cryptographic concepts and techniques are utilized in the DApp?"


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    project = tmp_path / "test-dapp"
    project.mkdir()
    (project / "README.md").write_text("# Test DApp\n", encoding="utf-8")
    return project


@pytest.fixture
def initialized_project(tmp_project: Path) -> Path:
    """Create a project with .selfaudit/config.yaml."""
    sa_dir = tmp_project / ".selfaudit"
    sa_dir.mkdir()
    (sa_dir / "config.yaml").write_text(
        'project:\n  name: "test-dapp"\n\naudit:\n  user_type: organization\n',
        encoding="utf-8",
    )
    return tmp_project


@pytest.fixture
def scenario_markdown() -> str:
    return (
        "# 🧾 Audit Summary\n\nGood posture.\n\n"
        "## 🛑 Critical Severity\n"
        "- SQL injection risk [Likelihood: Likely] [Mitigation: None]\n"
    )


@pytest.fixture
def messy_markdown() -> str:
    """Generator output with the usual defects: loose headings, missing tags, wrapped bullets."""
    return "\n".join([
        "Audit Summary preface text line",
        "## Critical",
        "* Private key stored in frontend bundle",
        "## 🚨 High",
        "- 🔴 🔴 Missing reentrancy guard [likelihood: very likely] [mitigation: partially mitigated]",
        "- Admin role unchecked",
        "   on withdraw path [Likelihood: Possible]",
        "### Medium issues",
        "1. Oracle price unvalidated [Mitigation: Full] [Likelihood: banana]",
        "## Recommendations",
        "- Add a timelock [Likelihood: Likely]",
    ])


@pytest.fixture
def developer_answers() -> dict[str, list[str]]:
    return {
        REENTRANCY_Q: ["No"],
        PAUSE_Q: ["Partial"],
        INCIDENT_Q: ["Yes"],
        CRYPTO_Q: ["Hash functions", "Digital signatures"],
    }


@pytest.fixture
def answers_file(tmp_path: Path) -> Path:
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({REENTRANCY_Q: ["No"]}), encoding="utf-8")
    return path
