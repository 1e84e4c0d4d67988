"""Prompt formatting for the external audit generator.

The user prompt is a plain ``Q:``/``A:`` listing of the answers; the system
prompt pins the markdown layout that the validator and parser decode.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union

from ..models.questions import Question

ANSWER_LIMIT = 300
OTHERS_OPTION = "Others"

SYSTEM_PROMPT = """\
You are a senior smart contract security auditor.
Your job is to generate a concise, professional **markdown** report.

### Output structure (use exactly this order and headings)

# \U0001f9fe Audit Summary
- 2-4 sentences summarising the overall security posture and key themes.

## \U0001f6d1 Critical
- <issue> [likelihood: very likely|likely|possible|unlikely|rare] [mitigation: none|partial|full]

## \U0001f6a8 High
- <issue> [likelihood: very likely|likely|possible|unlikely|rare] [mitigation: none|partial|full]

## ⚠️ Medium
- <issue> [likelihood: very likely|likely|possible|unlikely|rare] [mitigation: none|partial|full]

## \U0001f7e1 Low
- <issue> [likelihood: very likely|likely|possible|unlikely|rare] [mitigation: none|partial|full]

## ✅ Tailored Actionable Recommendations
- <action item, one short line>
- Focus on practical next steps for the specific DApp and codebase.
- Avoid long paragraphs; keep each bullet very focused.

### Style rules

- Use **markdown**, but no HTML tags.
- Be concrete and specific, not generic.
- Do NOT invent details that are not implied by the prompt.
- Group similar issues together when possible.
- Never mention this style guide or that you are an AI model."""

CLOSING_INSTRUCTIONS = " ".join([
    "Respond in clear, actionable bullet points.",
    "Prioritize by severity (High/Medium/Low) with short justifications.",
    "Include a short 2-3 sentence overview first, and end with 3 quick wins.",
])


def _truncate_answer(text: str, limit: int = ANSWER_LIMIT) -> str:
    return text if len(text) <= limit else text[:limit] + "…"


def _ordered_entries(
    responses: Mapping[str, Iterable[str]],
    questions_in_order: Optional[Iterable[Union[Question, str]]],
) -> list[tuple[str, list[str]]]:
    order = [q.question if isinstance(q, Question) else str(q) for q in (questions_in_order or [])]
    if order:
        pairs = [(q, responses.get(q)) for q in order]
    else:
        pairs = list(responses.items())
    return [(q, list(a)) for q, a in pairs if a]


def format_audit_responses(
    responses: Mapping[str, Iterable[str]],
    others_input: Optional[Mapping[str, str]] = None,
    user_type: str = "user",
    questions_in_order: Optional[Iterable[Union[Question, str]]] = None,
) -> str:
    """Serialize answers into the generator's user prompt.

    Questions follow ``questions_in_order`` when given (answers to questions
    outside it are left out), otherwise the mapping's own order. Unanswered
    questions are skipped and every answer value is capped at 300 characters.
    """
    others_input = others_input or {}
    who = str(getattr(user_type, "value", user_type) or "user").lower()

    parts = [
        f"You are a blockchain/smart-contract security expert. A {who} has completed a "
        "self-audit checklist. Based on their answers, provide tailored security "
        "recommendations, suggest improvements, and highlight any risks or best practices "
        "missed. Here are their answers:\n\n"
    ]

    for question, answers in _ordered_entries(responses, questions_in_order):
        cleaned: list[str] = []
        for answer in answers:
            if answer == OTHERS_OPTION:
                extra = (others_input.get(question) or "").strip()
                cleaned.append(f"Others: {_truncate_answer(extra)}" if extra else "Others: Not specified")
            else:
                value = _truncate_answer(str(answer).strip())
                if value:
                    cleaned.append(value)
        if not cleaned:
            continue
        parts.append(f"Q: {question}\nA: {', '.join(cleaned)}\n\n")

    parts.append(CLOSING_INSTRUCTIONS)
    return "".join(parts)
