"""
Parsing helpers for chat session transcript files.

A session file is a JSON object with optional ``sessionId``,
``creationDate``, ``lastMessageDate`` and a ``requests`` array. Response
parts come in several shapes depending on the assistant version, so text is
recovered from whichever field a part carries.
"""

import math
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, List, Mapping, Optional

from ..models import now_ms


def extract_response_text(parts: Iterable[Any]) -> str:
    """
    Concatenate the readable text of response parts.

    Recognized shapes, in order of precedence:
    - ``toolInvocationSerialized``: ``pastTenseMessage.value``
    - ``markdown``: every ``content[].value``
    - anything else: ``value``, or failing that ``text``
    """
    chunks: List[str] = []

    for part in parts:
        if not isinstance(part, Mapping):
            continue
        kind = part.get("kind")

        if kind == "toolInvocationSerialized":
            past = part.get("pastTenseMessage")
            if isinstance(past, Mapping) and isinstance(past.get("value"), str):
                chunks.append(past["value"])
            continue

        if kind == "markdown":
            content = part.get("content")
            if isinstance(content, list):
                for entry in content:
                    if isinstance(entry, Mapping) and isinstance(entry.get("value"), str):
                        chunks.append(entry["value"])
            continue

        value = part.get("value")
        if isinstance(value, str):
            chunks.append(value)
            continue

        text = part.get("text")
        if isinstance(text, str):
            chunks.append(text)

    return "\n\n".join(chunks).strip()


def parse_date_ms(value: Any) -> Optional[int]:
    """Parse an ISO 8601 or RFC 2822 date string to epoch milliseconds."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            return None
        if parsed is None:
            return None
    # Naive values are local time.
    return int(parsed.timestamp() * 1000)


def resolve_timestamp(request: Mapping[str, Any], session: Mapping[str, Any]) -> int:
    """
    Pick the timestamp for a chat turn.

    First valid value wins: the request's numeric timestamp, the session's
    last message date, the session's creation date, then the current time.
    """
    stamp = request.get("timestamp")
    if isinstance(stamp, (int, float)) and not isinstance(stamp, bool) and math.isfinite(stamp):
        return int(stamp)

    for key in ("lastMessageDate", "creationDate"):
        parsed = parse_date_ms(session.get(key))
        if parsed is not None:
            return parsed

    return now_ms()


def extract_prompt(request: Mapping[str, Any]) -> str:
    message = request.get("message")
    if isinstance(message, Mapping) and isinstance(message.get("text"), str):
        return message["text"].strip()
    return ""


def session_requests(document: Any) -> Optional[List[Mapping[str, Any]]]:
    """Request records of a session document, or None if it has no request list."""
    if not isinstance(document, Mapping):
        return None
    requests = document.get("requests")
    if not isinstance(requests, list):
        return None
    return [request for request in requests if isinstance(request, Mapping)]
