"""OutputBuffer — capped, append-only capture of one output stream."""

from __future__ import annotations

TRUNCATION_MARKER = "\n... [output truncated due to size limit] ..."

DEFAULT_MAX_OUTPUT_SIZE = 10 * 1024 * 1024


class OutputBuffer:
    """Accumulates text up to ``max_size`` characters.

    The first append that would overflow the cap is cut to fit, followed by
    TRUNCATION_MARKER. From then on the buffer is frozen and every later
    chunk is dropped.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_OUTPUT_SIZE) -> None:
        self.max_size = max_size
        self._parts: list[str] = []
        self._length = 0
        self._truncated = False

    @property
    def truncated(self) -> bool:
        return self._truncated

    @property
    def content(self) -> str:
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def __len__(self) -> int:
        return self._length

    def append(self, chunk: str) -> None:
        if self._truncated or not chunk:
            return

        if self._length + len(chunk) <= self.max_size:
            self._push(chunk)
            return

        remaining = max(self.max_size - self._length, 0)
        self._push(chunk[:remaining])
        self._push(TRUNCATION_MARKER)
        self._truncated = True

    def _push(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)
