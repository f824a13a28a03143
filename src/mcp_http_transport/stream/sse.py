"""Incremental Server-Sent Events framing and payload classification.

SSE format: "data: {...}\\n\\n"

Only the first ``data: `` line of a frame is used; other fields (``event:``,
``id:``, comments) are ignored.
"""

import json
import logging
from typing import Any

from ..types import RawPayload, StructuredMessage

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"
DATA_PREFIX = "data: "

_MESSAGE_KEYS = ("id", "method", "result", "error")


def is_message_shaped(value: Any) -> bool:
    """Whether a decoded JSON value looks like a JSON-RPC message."""
    if not isinstance(value, dict):
        return False
    if value.get("jsonrpc") == "2.0":
        return True
    return any(key in value for key in _MESSAGE_KEYS)


def classify_payload(data: str) -> StructuredMessage | RawPayload:
    """Turn the text after ``data: `` into a decoded event."""
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        return RawPayload(data=data)

    if is_message_shaped(parsed):
        return StructuredMessage(message=parsed)
    return RawPayload(data=data)


def _extract_data(frame: str) -> str | None:
    if not frame.strip():
        return None
    for line in frame.split("\n"):
        if line.startswith(DATA_PREFIX):
            return line[len(DATA_PREFIX) :]
    return None


class SSEDecoder:
    """Reassembles SSE payloads from arbitrarily split text chunks.

    Feed it the output of ``httpx.Response.aiter_text()``, which already
    carries partial multi-byte characters across reads. Text that does not
    yet end in a blank line stays buffered.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: str) -> list[str]:
        """Consume one decoded network read and return the payloads it completed."""
        self._buffer += chunk

        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)

        payloads = []
        for frame in frames:
            data = _extract_data(frame)
            if data is None:
                logger.debug("Skipping SSE frame without data line: %.200r", frame)
                continue
            payloads.append(data)
        return payloads

    def has_buffered_data(self) -> bool:
        """Check if there's text waiting for a frame delimiter."""
        return bool(self._buffer)
