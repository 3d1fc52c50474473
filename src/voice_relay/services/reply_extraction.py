"""Reply text extraction from text-generation responses.

Text-generation vendors (and different versions of the same vendor) return the
generated reply under different keys. Each extractor below understands exactly
one response shape and returns ``None`` when the payload does not match it.
``extract_reply_text`` tries them in priority order and, when none matches,
falls back to a bounded JSON dump of the payload so a reply is always produced.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional, Sequence

FALLBACK_LIMIT = 2000

Extractor = Callable[[Any], Optional[str]]


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _first(value: Any) -> Any:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and value:
        return value[0]
    return None


def _get(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    return None


def from_plain_string(payload: Any) -> Optional[str]:
    return _text(payload)


def from_candidate_parts(payload: Any) -> Optional[str]:
    """``candidates[0].content.parts[*].text`` (generateContent)."""

    content = _get(_first(_get(payload, "candidates")), "content")
    parts = _get(content, "parts")
    if not isinstance(parts, Sequence) or isinstance(parts, (str, bytes)):
        return None
    fragments = [part["text"] for part in parts if _text(_get(part, "text"))]
    return _text("".join(fragments))


def from_candidate_fields(payload: Any) -> Optional[str]:
    """Legacy ``candidates[0]`` fields (generateText and older SDK wrappers)."""

    candidate = _first(_get(payload, "candidates"))
    if not isinstance(candidate, Mapping):
        return None
    for key in ("output", "outputText", "content"):
        found = _text(candidate.get(key))
        if found:
            return found
    message = candidate.get("message")
    found = _text(_get(message, "contentText")) or _text(_get(message, "content"))
    if found:
        return found
    return _text(candidate.get("display"))


def from_output_blocks(payload: Any) -> Optional[str]:
    """``output[0]`` as a string, a list of content blocks or a ``text`` field."""

    output = _first(_get(payload, "output"))
    if output is None:
        return None
    if isinstance(output, str):
        return _text(output)
    content = _get(output, "content")
    if isinstance(content, Sequence) and not isinstance(content, (str, bytes)):
        for block in content:
            found = _text(block) or _text(_get(block, "text")) or _text(_get(block, "raw"))
            if found:
                return found
    return _text(_get(output, "text"))


def from_result(payload: Any) -> Optional[str]:
    return _text(_get(payload, "result"))


def from_text(payload: Any) -> Optional[str]:
    return _text(_get(payload, "text"))


def from_message_content(payload: Any) -> Optional[str]:
    return _text(_get(_get(payload, "message"), "content"))


EXTRACTORS: tuple[Extractor, ...] = (
    from_plain_string,
    from_candidate_parts,
    from_candidate_fields,
    from_output_blocks,
    from_result,
    from_text,
    from_message_content,
)


def fallback_dump(payload: Any, limit: int = FALLBACK_LIMIT) -> str:
    """Serialize an unrecognised payload, bounded to ``limit`` characters."""

    try:
        dumped = json.dumps(payload, ensure_ascii=False, default=repr)
    except ValueError:
        dumped = repr(payload)
    return dumped[:limit]


def extract_reply_text(
    payload: Any, extractors: Sequence[Extractor] = EXTRACTORS
) -> str:
    """Return the reply text from ``payload``; never raises on shape mismatch."""

    for extractor in extractors:
        found = extractor(payload)
        if found is not None:
            return found
    return fallback_dump(payload)


__all__ = [
    "EXTRACTORS",
    "FALLBACK_LIMIT",
    "extract_reply_text",
    "fallback_dump",
    "from_candidate_fields",
    "from_candidate_parts",
    "from_message_content",
    "from_output_blocks",
    "from_plain_string",
    "from_result",
    "from_text",
]
