"""Keyword-based priority classification applied at ingest.

Deterministic and side-effect free apart from tagging the payload it is
handed: no storage or network access.
"""

from typing import Any, Optional

from submission_api.domain.enums import Priority

URGENT_KEYWORDS: tuple[str, ...] = ("urgent", "asap", "emergency", "immediately", "rush")
AUTO_URGENT_TAG = "auto-urgent"


def classify_priority(message: Optional[str]) -> Priority:
    """Return URGENT if the message contains any urgent keyword, else MEDIUM.

    Matching is a case-insensitive substring test, so "RUSHED" and
    "asap!!" both count.
    """
    if not message:
        return Priority.MEDIUM
    text = message.lower()
    if any(keyword in text for keyword in URGENT_KEYWORDS):
        return Priority.URGENT
    return Priority.MEDIUM


def apply_auto_priority(payload: dict[str, Any]) -> dict[str, Any]:
    """Fill ``priority`` on a raw create payload when the caller left it out.

    A caller-supplied priority is never overridden. When the classifier picks
    URGENT, ``auto-urgent`` is appended to ``metadata.tags``. Returns a new
    mapping; the input is not mutated.
    """
    if payload.get("priority"):
        return payload

    result = dict(payload)
    message = result.get("message")
    priority = classify_priority(message if isinstance(message, str) else None)
    result["priority"] = priority.value

    metadata = result.get("metadata") or {}
    # Malformed envelopes are left for schema validation to reject.
    if priority is Priority.URGENT and isinstance(metadata, dict):
        metadata = dict(metadata)
        tags = metadata.get("tags") or []
        if not isinstance(tags, list):
            return result
        tags = list(tags)
        if AUTO_URGENT_TAG not in tags:
            tags.append(AUTO_URGENT_TAG)
        metadata["tags"] = tags
        result["metadata"] = metadata

    return result
