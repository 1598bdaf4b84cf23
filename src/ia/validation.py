"""
Tolerant decoding helpers for model output.

Model responses are semi-structured text. These helpers pull a JSON object
out of the text and coerce individual fields, returning the caller's
default whenever a value is missing or has the wrong type.
"""

from __future__ import annotations

import json
import math
from typing import Any, Mapping


def extract_json_object(content: str) -> dict[str, Any] | None:
    """Extract the first JSON object from a model response.

    Looks for a ```json fence, then any ``` fence, then the outermost
    braces.

    Args:
        content: Raw model response text.

    Returns:
        The decoded object, or None if no JSON object could be decoded.
    """
    if not content or not content.strip():
        return None

    candidates: list[str] = []
    if "```json" in content:
        start = content.find("```json") + 7
        end = content.find("```", start)
        candidates.append(content[start:end if end != -1 else None].strip())
    elif "```" in content:
        start = content.find("```") + 3
        end = content.find("```", start)
        candidates.append(content[start:end if end != -1 else None].strip())

    start = content.find("{")
    end = content.rfind("}")
    if start != -1 and end > start:
        candidates.append(content[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    return None


def first_present(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the value of the first key present in ``data``, else None."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def as_mapping(value: Any) -> dict[str, Any]:
    """Return ``value`` if it is a mapping, else an empty dict."""
    return dict(value) if isinstance(value, Mapping) else {}


def as_text(value: Any, default: str) -> str:
    """Coerce a scalar to non-blank text.

    Args:
        value: Decoded JSON value.
        default: Returned for missing, blank or non-scalar values.

    Returns:
        Stripped text or the default.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        return value.strip() or default
    if isinstance(value, (int, float)):
        return str(value)
    return default


def as_text_list(value: Any, default: list[str]) -> list[str]:
    """Coerce a JSON array to a list of non-blank strings.

    Non-list values yield a copy of ``default``. Inside a list, items that
    are not scalars or are blank are dropped, so an explicit empty array
    stays empty.
    """
    if not isinstance(value, list):
        return list(default)
    items: list[str] = []
    for item in value:
        text = as_text(item, "")
        if text:
            items.append(text)
    return items


def as_int(value: Any, default: int) -> int:
    """Coerce a number or numeric string to int, else ``default``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return default if math.isnan(value) or math.isinf(value) else int(value)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
        return default if math.isnan(number) or math.isinf(number) else int(number)
    return default


def clamp(value: int, low: int, high: int) -> int:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(value, high))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))
