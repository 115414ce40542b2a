"""Streaming deanonymizer — buffers chunks and restores tokens as they complete.

For SSE/streaming replies where tokens arrive as fragments:
    <PI  →  <PII_EM  →  <PII_EMAIL_1a2b  →  <PII_EMAIL_1a2b3c4d>

Text is emitted as soon as it is clearly not part of a token; a possible
token start is held back until it completes or stops looking like one.

Usage:
    streamer = StreamingDeanonymizer(deanonymizer)
    for chunk in sse_stream:
        ready_text = streamer.feed(chunk)
        if ready_text:
            yield ready_text
    # Flush any remaining buffer
    yield streamer.flush()
"""

from __future__ import annotations

from .deanonymizer import Deanonymizer
from .tokens import TOKEN_PATTERN, TOKEN_PREFIX

# "<PII_" + longest category + "_" + 8 hex + ">"
_MAX_TOKEN_LEN = len(TOKEN_PREFIX) + len("CREDIT_CARD") + 10


class StreamingDeanonymizer:
    """Buffers streaming chunks and restores complete tokens."""

    __slots__ = ("_deanonymizer", "_buffer", "_max_token_len")

    def __init__(self, deanonymizer: Deanonymizer, *, max_token_len: int = _MAX_TOKEN_LEN) -> None:
        self._deanonymizer = deanonymizer
        self._buffer = ""
        self._max_token_len = max_token_len

    def feed(self, chunk: str) -> str:
        """Feed a chunk, return any text ready to emit."""
        self._buffer += chunk
        return self._drain()

    def flush(self) -> str:
        """Flush remaining buffer (call at end of stream)."""
        out = self._buffer
        self._buffer = ""
        return self._deanonymizer.deanonymize(out) if out else ""

    def _drain(self) -> str:
        out_parts: list[str] = []

        while self._buffer:
            idx = self._buffer.find("<")

            if idx == -1:
                out_parts.append(self._buffer)
                self._buffer = ""
                break

            if idx > 0:
                out_parts.append(self._buffer[:idx])
                self._buffer = self._buffer[idx:]

            # Buffer now starts with "<"
            m = TOKEN_PATTERN.match(self._buffer)
            if m:
                out_parts.append(self._deanonymizer.deanonymize(m.group()))
                self._buffer = self._buffer[m.end():]
                continue

            head = self._buffer[:len(TOKEN_PREFIX)]
            if not TOKEN_PREFIX.startswith(head):
                # Diverged from "<PII_", ordinary text
                out_parts.append("<")
                self._buffer = self._buffer[1:]
                continue

            close_idx = self._buffer.find(">")
            if close_idx != -1 or len(self._buffer) > self._max_token_len:
                # Closed or overlong without matching the token shape
                out_parts.append("<")
                self._buffer = self._buffer[1:]
                continue

            # Possible token prefix, wait for more data
            break

        return "".join(out_parts)
