# aiready/services/json_extract.py
"""Heuristics for pulling structured data out of model output."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, Optional

from aiready.core.errors import AIModelError

_FENCE_OPEN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```")
_GREEDY_OBJECT = re.compile(r"\{[\s\S]*\}")


def strip_code_fences(text: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text or "")).strip()


def safe_json_parse(text: str) -> Any:
    """
    Parse a model reply as JSON:
      1. drop ```json / ``` fences
      2. keep the span from the first "{" to the last "}"
      3. json.loads, raising AIModelError with the attempted string on failure
    """
    candidate = strip_code_fences(text)
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end > start:
        candidate = candidate[start : end + 1]

    try:
        return json.loads(candidate)
    except (TypeError, ValueError) as e:
        raise AIModelError(
            "parser",
            "Failed to parse AI response as JSON",
            details={"json_string": candidate[:2000], "parse_error": str(e)},
        ) from e


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Greedy regex fallback; None when nothing in the text parses to an object."""
    match = _GREEDY_OBJECT.search(text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_json_reply(text: str) -> Dict[str, Any]:
    """safe_json_parse, then the greedy fallback; raises when both fail."""
    try:
        data = safe_json_parse(text)
    except AIModelError:
        data = extract_json_object(text)
        if data is None:
            raise
    if not isinstance(data, dict):
        raise AIModelError("parser", "AI response is not a JSON object", details={"json_type": type(data).__name__})
    return data


def _key_pattern(key: str) -> re.Pattern:
    # "ai_capabilities" matches "AI capabilities", "ai-capabilities", "aiCapabilities"
    parts = re.split(r"[_\s]+", key.strip())
    body = r"[\s_-]*".join(re.escape(p) for p in parts if p)
    return re.compile(
        rf"^[\s*\-#\"]*{body}[\"*\s]*[:=][\s*_]*\"?(?P<value>[^\n\"]+)\"?",
        re.IGNORECASE | re.MULTILINE,
    )


def extract_fields_from_text(text: str, keys: Iterable[str]) -> Dict[str, str]:
    """`Key: value` lines from prose replies. Missing keys are left out."""
    out: Dict[str, str] = {}
    for key in keys:
        match = _key_pattern(key).search(text or "")
        if match:
            value = match.group("value").strip().rstrip(",").strip(" *_")
            if value:
                out[key] = value
    return out
