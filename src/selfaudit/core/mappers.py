"""Severity/status mapping between analytics rows and the persistence layer."""

from __future__ import annotations

from ..models.analytics import RecStatus
from ..models.finding import Mitigation


def to_db_severity(value: object) -> str:
    """Title-case severity as stored; anything unrecognised is Low."""
    t = str(value or "").lower()
    if t.startswith("crit"):
        return "Critical"
    if t.startswith("hi"):
        return "High"
    if t.startswith("med"):
        return "Medium"
    return "Low"


# Rows read back from storage use the same Title-case vocabulary.
from_db_severity = to_db_severity


def to_db_status(value: object) -> str:
    t = str(value or "").lower()
    if t in ("implemented", "done"):
        return "done"
    if t in ("partial", "in_progress"):
        return "in_progress"
    return "open"


def from_db_status(value: object) -> RecStatus:
    t = str(value or "").lower()
    if t in ("done", "implemented"):
        return RecStatus.IMPLEMENTED
    if t in ("in_progress", "partial"):
        return RecStatus.PARTIAL
    return RecStatus.OPEN


def status_from_mitigation(mitigation: Mitigation) -> RecStatus:
    if mitigation == Mitigation.FULL:
        return RecStatus.IMPLEMENTED
    if mitigation == Mitigation.PARTIAL:
        return RecStatus.PARTIAL
    return RecStatus.OPEN
