"""Order-independent fingerprints of analysis-relevant answers."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Iterable

from ai_analysis.types import AnswerItem

AnswerKeyFn = Callable[[AnswerItem], str]


def default_answer_key(answer: AnswerItem) -> str:
    """``question_id=value`` with structured values serialized canonically."""
    value = answer.answer
    if isinstance(value, (dict, list, tuple)):
        value = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return f"{answer.question_id}={value}"


def compute_fingerprint(
    answers: Iterable[AnswerItem],
    key_fn: AnswerKeyFn = default_answer_key,
    extra: Iterable[str] = (),
) -> str:
    """sha256 over the sorted per-answer keys joined by ``|``.

    ``extra`` carries request-level discriminators (spread type, language...)
    and is appended after the answer keys, also sorted.
    """
    material = "|".join(sorted(key_fn(a) for a in answers))
    extras = sorted(extra)
    if extras:
        material = f"{material}#{'|'.join(extras)}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()
