"""Adapters from stored answer shapes to the ``{question: [options]}`` map.

Two stored shapes are supported:

- embedded lists on an audit record: ``[{"question": ..., "options": [...]}]``
- normalized answer rows: ``[{"question": ..., "option_value": ...}]``
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

Responses = dict[str, list[str]]


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            result.append(v)
    return result


def merge_responses(*parts: Optional[Mapping[str, Iterable[str]]]) -> Responses:
    """Union selected options per question, keeping first-seen order."""
    out: Responses = {}
    for part in parts:
        if not part:
            continue
        for question, options in part.items():
            out[question] = _dedupe([*out.get(question, []), *(options or [])])
    return out


def responses_from_embedded(items: Optional[Iterable[Mapping[str, Any]]]) -> Responses:
    out: Responses = {}
    for row in items or []:
        if not isinstance(row, Mapping):
            continue
        question = str(row.get("question") or "").strip()
        if not question:
            continue
        options = row.get("options")
        if not isinstance(options, (list, tuple)):
            continue
        values = [str(o) for o in options if o]
        if values:
            out[question] = _dedupe(values)
    return out


def responses_from_rows(rows: Optional[Iterable[Mapping[str, Any]]]) -> Responses:
    out: Responses = {}
    for row in rows or []:
        if not isinstance(row, Mapping):
            continue
        question = str(row.get("question") or "").strip()
        value = str(row.get("option_value") or "").strip()
        if not question or not value:
            continue
        out[question] = _dedupe([*out.get(question, []), value])
    return out


def responses_from_audit(audit: Optional[Mapping[str, Any]]) -> Responses:
    """Collect developer and organization answers embedded on an audit record."""
    audit = audit or {}
    meta = audit.get("meta") or {}
    dev = meta.get("developer_responses") or audit.get("developer_responses")
    org = meta.get("organization_responses") or audit.get("organization_responses")
    return merge_responses(responses_from_embedded(dev), responses_from_embedded(org))
