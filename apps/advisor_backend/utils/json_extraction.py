"""Best-effort decoding of JSON arrays from language model replies.

Models asked for "ONLY a JSON array" still wrap it in markdown fences or
surround it with prose now and then. ``extract_json_array`` strips fence
markers, takes the outermost ``[...]`` span and parses it, returning
``default`` whenever any of those steps fails.
"""

import json
import re
from typing import Any, List, Optional

_FENCE_PATTERN = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text).strip()


def extract_json_array(text: Optional[str], default: Any = None) -> Optional[List[Any]]:
    """Extract the first top-level JSON array found in ``text``.

    Args:
        text: Raw model output.
        default: Value returned when no array can be decoded.

    Returns:
        The decoded list, or ``default``.
    """
    if not text:
        return default

    cleaned = strip_code_fences(text)
    match = _ARRAY_PATTERN.search(cleaned)
    if match is None:
        return default

    try:
        decoded = json.loads(match.group(0))
    except json.JSONDecodeError:
        return default

    if not isinstance(decoded, list):
        return default
    return decoded
