"""Finding data models and the fixed scoring weights."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> Severity:
        """Map a loose severity string to a member; unparseable input is UNKNOWN."""
        if isinstance(value, Severity):
            return value
        t = str(value or "").lower()
        if re.search(r"critical|catastrophic", t):
            return cls.CRITICAL
        if "high" in t:
            return cls.HIGH
        if "medium" in t:
            return cls.MEDIUM
        if "low" in t:
            return cls.LOW
        if "info" in t:
            return cls.INFO
        return cls.UNKNOWN

    @property
    def weight(self) -> Optional[int]:
        return SEVERITY_SCORE.get(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Likelihood(str, Enum):
    VERY_LIKELY = "very likely"
    LIKELY = "likely"
    POSSIBLE = "possible"
    UNLIKELY = "unlikely"
    RARE = "rare"

    @classmethod
    def parse(cls, value: object) -> Likelihood:
        if isinstance(value, Likelihood):
            return value
        t = str(value or "").lower()
        if re.search(r"very\s*likely", t):
            return cls.VERY_LIKELY
        if "unlikely" in t:
            return cls.UNLIKELY
        if "likely" in t:
            return cls.LIKELY
        if "possible" in t:
            return cls.POSSIBLE
        if "rare" in t:
            return cls.RARE
        return cls.POSSIBLE

    @property
    def weight(self) -> int:
        return LIKELIHOOD_SCORE[self]

    @property
    def label(self) -> str:
        return self.value.title()


class Mitigation(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"

    @classmethod
    def parse(cls, value: object) -> Mitigation:
        if isinstance(value, Mitigation):
            return value
        t = str(value or "").lower()
        if "full" in t:
            return cls.FULL
        if "partial" in t:
            return cls.PARTIAL
        return cls.NONE

    @property
    def factor(self) -> float:
        return MITIGATION_FACTOR[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


SEVERITY_SCORE: dict[Severity, int] = {
    Severity.CRITICAL: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 3,
    Severity.LOW: 2,
    Severity.INFO: 1,
}

LIKELIHOOD_SCORE: dict[Likelihood, int] = {
    Likelihood.VERY_LIKELY: 5,
    Likelihood.LIKELY: 4,
    Likelihood.POSSIBLE: 3,
    Likelihood.UNLIKELY: 2,
    Likelihood.RARE: 1,
}

MITIGATION_FACTOR: dict[Mitigation, float] = {
    Mitigation.NONE: 1.0,
    Mitigation.PARTIAL: 0.5,
    Mitigation.FULL: 0.0,
}

MAX_LIKELIHOOD_SCORE = LIKELIHOOD_SCORE[Likelihood.VERY_LIKELY]

# Severities that take part in the risk matrices (info never does).
RATED_SEVERITIES = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)


class Finding(BaseModel):
    """One security observation, immutable once built."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    likelihood: Likelihood = Likelihood.POSSIBLE
    mitigation: Mitigation = Mitigation.NONE
    text: str

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, v: object) -> Severity:
        return Severity.parse(v)

    @field_validator("likelihood", mode="before")
    @classmethod
    def _parse_likelihood(cls, v: object) -> Likelihood:
        return Likelihood.parse(v)

    @field_validator("mitigation", mode="before")
    @classmethod
    def _parse_mitigation(cls, v: object) -> Mitigation:
        return Mitigation.parse(v)
