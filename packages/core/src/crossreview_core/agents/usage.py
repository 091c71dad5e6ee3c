"""Best-effort token usage extraction from free-text CLI output.

Every CLI prints usage differently (or not at all), so this scans for a few
well-known labels and takes the first number after them. Anything it cannot
find is left as None; it never raises.
"""

from __future__ import annotations

import re

from crossreview_core.models import TokenUsage

_PROMPT_KEYS = ("prompt_tokens", "prompt tokens", "input_tokens", "input tokens")
_COMPLETION_KEYS = ("completion_tokens", "completion tokens", "output_tokens", "output tokens")
_TOTAL_KEYS = ("total_tokens", "total tokens", "tokens total")

_NUMBER_RE = re.compile(r"\d[\d,]*")


def parse_usage(stdout: str, stderr: str) -> TokenUsage:
    merged = f"{stdout}\n{stderr}".lower()
    prompt = _extract_metric(merged, _PROMPT_KEYS)
    completion = _extract_metric(merged, _COMPLETION_KEYS)
    total = _extract_metric(merged, _TOTAL_KEYS)

    if total is None and prompt is not None and completion is not None:
        total = prompt + completion

    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def _extract_metric(text: str, keys: tuple[str, ...]) -> int | None:
    # Prefer a number on the same line as the label ("input tokens: 1,234").
    for line in text.splitlines():
        for key in keys:
            idx = line.find(key)
            if idx != -1:
                value = _first_number(line[idx + len(key) :])
                if value is None:
                    value = _first_number(line)
                if value is not None:
                    return value

    # Fall back to the first number anywhere after the label (multi-line JSON).
    for key in keys:
        idx = text.find(key)
        if idx != -1:
            value = _first_number(text[idx + len(key) :])
            if value is not None:
                return value
    return None


def _first_number(s: str) -> int | None:
    match = _NUMBER_RE.search(s)
    if not match:
        return None
    return int(match.group(0).replace(",", ""))
