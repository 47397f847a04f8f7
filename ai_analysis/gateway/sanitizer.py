"""Response sanitizer: turn decorated / truncated model output into JSON.

Two stages:
  - sanitize(): strip Markdown fences and surrounding prose, then apply
    conservative syntactic repairs. Never raises.
  - parse_robust(): direct parse → whitespace-collapsed parse → truncation
    repair. Returns Ok(parsed) or Err(UnparsableJSON).

Both are pure and synchronous.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ai_analysis.core.exceptions import UnparsableJSON
from ai_analysis.core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

_FENCE_JSON_RE = re.compile(r"```json", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_ADJACENT_RE = [
    (re.compile(r"\]\s*\["), "],["),
    (re.compile(r"}\s*{"), "},{"),
    (re.compile(r"\]\s*{"), "],{"),
    (re.compile(r"}\s*\["), "},["),
]
_NEWLINE_BEFORE_CLOSE_RE = re.compile(r"\n\s*(?=\s*[}\]])")
_NEWLINE_BEFORE_SEP_RE = re.compile(r"\n\s*(?=\s*[,:])")
_WHITESPACE_RUN_RE = re.compile(r"\s+")
_DANGLING_KEY_RE = re.compile(r',?\s*"(?:[^"\\]|\\.)*"\s*:\s*$')
_STRING_TOKEN_RE = re.compile(r"\x00(\d+)\x00")
_FRACTION_RE = re.compile(r"\x00(\d+)\x00:\s*(\d+)/(\d+)")

# Numeric fields the model sometimes writes as "N/M"; value says which side to keep
FRACTION_FIELDS: dict[str, str] = {
    "score": "numerator",
    "maxScore": "denominator",
}

# Cut-back attempts before truncation repair gives up
_MAX_REPAIR_PASSES = 64


# ---------------------------------------------------------------------------
# sanitize
# ---------------------------------------------------------------------------


def sanitize(raw: str | None, fraction_fields: dict[str, str] | None = None) -> str:
    """Remove decorations from raw model text and repair common syntax slips.

    Repairs only touch text outside string literals; string contents come
    back byte for byte.
    """
    text = (raw or "").strip()

    text = _FENCE_JSON_RE.sub("", text).replace("```", "").strip()

    start = text.find("{")
    if start != -1:
        text = text[start:]
        end = text.rfind("}")
        # Trailing prose is cut only after a balanced document; a truncated one keeps its tail
        if end != -1:
            stack, in_string, _, _ = _scan(text[: end + 1])
            if not stack and not in_string:
                text = text[: end + 1]

    masked, strings = _mask_strings(text)

    masked = _TRAILING_COMMA_RE.sub(r"\1", masked)

    for pattern, replacement in _ADJACENT_RE:
        masked = pattern.sub(replacement, masked)

    masked = _NEWLINE_BEFORE_CLOSE_RE.sub(" ", masked)
    masked = _NEWLINE_BEFORE_SEP_RE.sub(" ", masked)

    fields = fraction_fields or FRACTION_FIELDS

    def _fraction(m: re.Match) -> str:
        key = strings[int(m.group(1))]
        side = fields.get(key[1:-1])
        if side is None:
            return m.group(0)
        return f"{key}: {m.group(2) if side == 'numerator' else m.group(3)}"

    masked = _FRACTION_RE.sub(_fraction, masked)

    text = _STRING_TOKEN_RE.sub(lambda m: strings[int(m.group(1))], masked)
    logger.debug("Sanitized response: raw_length=%d sanitized_length=%d", len(raw or ""), len(text))
    return text


def _mask_strings(text: str) -> tuple[str, list[str]]:
    """Swap every string literal for an indexed token.

    An unterminated literal at the end (truncated output) is masked too.
    """
    out: list[str] = []
    strings: list[str] = []
    i, n = 0, len(text)
    while i < n:
        if text[i] != '"':
            out.append(text[i])
            i += 1
            continue
        j = i + 1
        while j < n:
            if text[j] == "\\":
                j += 2
                continue
            j += 1
            if text[j - 1] == '"':
                break
        j = min(j, n)
        strings.append(text[i:j])
        out.append(f"\x00{len(strings) - 1}\x00")
        i = j
    return "".join(out), strings


# ---------------------------------------------------------------------------
# parse_robust
# ---------------------------------------------------------------------------


def parse_robust(sanitized: str, result_type: str = "") -> Result[Any, UnparsableJSON]:
    """Parse sanitized text, falling back to progressively more aggressive repair."""
    try:
        return Ok(json.loads(sanitized))
    except ValueError as e:
        logger.warning("%s: direct JSON parse failed (%s)", result_type or "AI", e)
        logger.debug("Failed JSON tail: %s", sanitized[-300:])

    collapsed = _WHITESPACE_RUN_RE.sub(" ", sanitized.replace("\n", " ").replace("\r", " ").replace("\t", " "))
    try:
        parsed = json.loads(collapsed)
        logger.info("%s: JSON parse succeeded after whitespace collapse", result_type or "AI")
        return Ok(parsed)
    except ValueError:
        pass

    repaired = repair_truncated(collapsed)
    if repaired is not None:
        logger.info("%s: truncated JSON repaired", result_type or "AI")
        return Ok(repaired)

    logger.error("%s: JSON repair failed (length=%d)", result_type or "AI", len(sanitized))
    return Err(UnparsableJSON(result_type, "response was truncated and could not be repaired"))


def _scan(text: str) -> tuple[list[str], bool, bool, int]:
    """Scan outside-string structure.

    Returns (open bracket stack, ends inside a string, ends on a pending
    escape, index of the last comma outside strings or -1).
    """
    stack: list[str] = []
    in_string = False
    escape = False
    last_comma = -1

    for i, char in enumerate(text):
        if escape:
            escape = False
            continue
        if char == "\\":
            escape = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char in "{[":
            stack.append(char)
        elif char in "}]":
            if stack:
                stack.pop()
        elif char == ",":
            last_comma = i

    return stack, in_string, escape, last_comma


def _close(text: str) -> str | None:
    """Close an open string, drop a dangling key / comma, balance brackets."""
    stack, in_string, escape, _ = _scan(text)
    if escape:
        text = text[:-1]
    if in_string:
        text += '"'

    text = text.rstrip()
    if text.endswith(":"):
        text = _DANGLING_KEY_RE.sub("", text)
    text = text.rstrip().rstrip(",")

    stack, in_string, _, _ = _scan(text)
    if in_string:
        return None
    closers = "".join("]" if opener == "[" else "}" for opener in reversed(stack))
    return text + closers


def repair_truncated(text: str) -> Any | None:
    """Recover a JSON value from text cut off mid-generation.

    Returns the parsed value, or None when nothing parseable can be rebuilt.
    """
    text = text.strip()
    if not text:
        return None

    _, in_string, _, _ = _scan(text)
    if in_string or text.endswith('"'):
        last_brace = text.rfind("}")
        if last_brace > 0:
            try:
                return json.loads(text[: last_brace + 1])
            except ValueError:
                pass

    candidate = text
    for _ in range(_MAX_REPAIR_PASSES):
        closed = _close(candidate)
        if closed is not None:
            try:
                return json.loads(closed)
            except ValueError:
                pass

        # Drop the last (incomplete) element and try again
        _, _, _, last_comma = _scan(candidate)
        if last_comma <= 0:
            return None
        candidate = candidate[:last_comma]

    return None


# ---------------------------------------------------------------------------
# Provider payload helpers
# ---------------------------------------------------------------------------


def extract_content(provider_payload: dict, result_type: str = "") -> Result[str, UnparsableJSON]:
    """Pull ``choices[0].message.content`` out of a chat completions payload."""
    try:
        content = provider_payload["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        content = ""
    if not content:
        return Err(UnparsableJSON(result_type, "empty response content"))
    return Ok(content)
