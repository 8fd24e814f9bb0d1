"""Best-effort parsing of JSON embedded in generative model output.

Model responses are expected to hold a single JSON object or array, but they
arrive wrapped in markdown fences, followed by commentary, or cut off mid-way.
Parsing proceeds in stages:

1. Strip markdown fences and slice from the first ``{`` or ``[``.
2. Strict parse of the leading value (trailing text is ignored).
3. Repair: drop trailing commas, close an unterminated string, strip a
   trailing incomplete element and close open brackets innermost-first.
   If that still fails, back off to earlier element boundaries.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, Field

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)(?:```|$)", re.DOTALL)
_DECODER = json.JSONDecoder()


class JSONRepairError(ValueError):
    """Raised when no parseable JSON can be recovered from a response."""


class ParseOutcome(BaseModel):
    """Result of parsing a model response."""

    ok: bool = Field(description="Whether JSON was recovered")
    data: Any = Field(default=None, description="Parsed JSON value")
    repaired: bool = Field(default=False, description="Whether repair was needed")
    error: str | None = Field(default=None, description="Failure reason")


def strip_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or the text itself."""
    if "```" in text:
        match = _FENCE_RE.search(text)
        if match:
            return match.group(1).strip()
    return text.strip()


def extract_json_fragment(text: str) -> str:
    """Slice the response from the first JSON opening bracket."""
    body = strip_fences(text)
    starts = [i for i in (body.find("{"), body.find("[")) if i != -1]
    if not starts:
        raise JSONRepairError("No JSON object or array found in response")
    return body[min(starts) :]


def _strip_trailing_comma(out: list[str], boundaries: list[tuple[int, list[str]]]) -> None:
    i = len(out)
    while i and out[i - 1].isspace():
        i -= 1
    if i and out[i - 1] == ",":
        del out[i - 1 :]
        while boundaries and boundaries[-1][0] >= len(out):
            boundaries.pop()


def _close(text: str, stack: list[str]) -> str | None:
    text = text.rstrip()
    while text.endswith(","):
        text = text[:-1].rstrip()
    if not text or text.endswith(":"):
        # A key without a value cannot be completed
        return None
    return text + "".join(reversed(stack))


def repair_candidates(fragment: str) -> list[str]:
    """Produce repaired versions of a fragment, most complete first."""
    out: list[str] = []
    stack: list[str] = []
    boundaries: list[tuple[int, list[str]]] = []
    in_string = False
    escaped = False

    for ch in fragment:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
            out.append(ch)
        elif ch in "}]":
            _strip_trailing_comma(out, boundaries)
            if stack and stack[-1] == ch:
                stack.pop()
                out.append(ch)
                if not stack:
                    return ["".join(out)]
            # Unbalanced closer: drop it
        elif ch == ",":
            boundaries.append((len(out), list(stack)))
            out.append(ch)
        else:
            out.append(ch)

    if in_string:
        if escaped:
            out.pop()
        out.append('"')

    candidates: list[str] = []
    closed = _close("".join(out), stack)
    if closed is not None:
        candidates.append(closed)
    for position, snapshot in reversed(boundaries):
        closed = _close("".join(out[:position]), snapshot)
        if closed is not None:
            candidates.append(closed)
    return candidates


def repair_json(text: str) -> str:
    """Repair a truncated or sloppy JSON response into parseable JSON text.

    Raises:
        JSONRepairError: If no candidate parses.
    """
    fragment = extract_json_fragment(text)
    for candidate in repair_candidates(fragment):
        try:
            json.loads(candidate)
        except json.JSONDecodeError:
            continue
        return candidate
    raise JSONRepairError("Could not repair JSON response")


def parse_llm_json(text: str | None) -> ParseOutcome:
    """Parse the JSON value in a model response, repairing it if needed."""
    if not text or not text.strip():
        return ParseOutcome(ok=False, error="Empty response")

    try:
        fragment = extract_json_fragment(text)
    except JSONRepairError as e:
        return ParseOutcome(ok=False, error=str(e))

    try:
        data, _ = _DECODER.raw_decode(fragment)
        return ParseOutcome(ok=True, data=data)
    except json.JSONDecodeError:
        pass

    try:
        repaired = repair_json(fragment)
    except JSONRepairError as e:
        return ParseOutcome(ok=False, error=str(e))

    return ParseOutcome(ok=True, data=json.loads(repaired), repaired=True)
