"""Shared building blocks for result normalizers.

Every normalizer follows the same five steps:
  1. detect the input shape (closed Enum per result type)
  2. map alternate names / qualitative labels onto canonical fields
  3. derive absent fields, or substitute documented defaults
  4. de-duplicate and bound list fields, padding with fillers
  5. final completeness check → SchemaViolation

Nothing here fabricates analysis content: when a required field is missing
from every known shape, the record is rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from ai_analysis.core.exceptions import SchemaViolation
from ai_analysis.core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Qualitative label → numeric score (checked in this order; "very high" before "high")
DEFAULT_LABEL_TABLE: tuple[tuple[str, float], ...] = (
    ("very high", 9),
    ("very_high", 9),
    ("high", 8),
    ("moderate", 6),
    ("low", 4),
)

GENERIC_FILLERS = ("Use spaced repetition", "Summarize after each session")


class Normalizer(Protocol):
    """Maps parsed model output onto one canonical record.

    ``known`` carries fields already computed from the answers. They take
    precedence over the model's values, count as present for the
    completeness check and feed any derived fields.
    """

    result_type: str

    def normalize(self, parsed: Any, known: Mapping[str, Any] | None = None) -> Result[BaseModel, SchemaViolation]: ...


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def label_to_score(label: Any, table: Iterable[tuple[str, float]] = DEFAULT_LABEL_TABLE) -> float:
    """Convert "High"/"Moderate"/... (or a number) to a numeric score; unknown → 0."""
    if isinstance(label, bool):
        return 0
    if isinstance(label, (int, float)):
        return label
    text = str(label or "").strip().lower()
    try:
        return float(text)
    except ValueError:
        pass
    for needle, value in table:
        if needle in text:
            return value
    return 0


def first_present(mapping: Any, *keys: str, default: Any = None) -> Any:
    """Value of the first key whose value is truthy (0 counts as present)."""
    if not isinstance(mapping, Mapping):
        return default
    for key in keys:
        value = mapping.get(key)
        if value is None or value == "" or value == [] or value == {}:
            continue
        return value
    return default


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return " ".join(as_text(v) for v in value if as_text(v))
    return str(value).strip()


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def bounded_list(
    values: Any,
    minimum: int = 2,
    maximum: int = 6,
    fillers: Iterable[str] = (),
    pad: Iterable[str] = GENERIC_FILLERS,
) -> list[str]:
    """Strip, de-duplicate (order preserved), cap at ``maximum``, pad to ``minimum``.

    ``fillers`` are merged in after the values (related content from the same
    record); ``pad`` is the generic last resort when still under ``minimum``.
    """
    merged = [as_text(v) for v in [*as_list(values), *fillers]]
    unique = list(dict.fromkeys(v for v in merged if v))
    if len(unique) >= minimum:
        return unique[:maximum]
    return list(dict.fromkeys([*unique, *pad]))[:maximum]


# ---------------------------------------------------------------------------
# Completeness
# ---------------------------------------------------------------------------


def missing_fields(
    record: Mapping[str, Any],
    required_scalars: Iterable[str] = (),
    required_lists: Iterable[str] = (),
) -> list[str]:
    missing = [f for f in required_scalars if record.get(f) is None or as_text(record.get(f)) == ""]
    missing += [f for f in required_lists if not record.get(f)]
    return missing


def require_complete(
    result_type: str,
    record: Mapping[str, Any],
    required_scalars: Iterable[str] = (),
    required_lists: Iterable[str] = (),
) -> SchemaViolation | None:
    """Return a SchemaViolation naming the absent fields, or None when complete."""
    missing = missing_fields(record, required_scalars, required_lists)
    if missing:
        logger.warning("%s: normalized record incomplete, missing %s", result_type, missing)
        return SchemaViolation(missing, result_type)
    return None


def build_model(model_cls: type[M], data: Mapping[str, Any], result_type: str) -> Result[M, SchemaViolation]:
    """Validate ``data`` into ``model_cls``; validation errors become SchemaViolation."""
    try:
        return Ok(model_cls.model_validate(dict(data)))
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors()})
        logger.warning("%s: canonical validation failed for %s", result_type, fields)
        return Err(SchemaViolation(fields, result_type))
