"""Output log sinks for text forwarded from cargo."""

from __future__ import annotations

from typing import Protocol


class OutputSink(Protocol):
    """Anything that accepts raw text for display (an output pane, a console)."""

    def append(self, text: str) -> None: ...


class BufferedOutput:
    """Collects appended text in memory."""

    def __init__(self) -> None:
        self._chunks: list[str] = []

    def append(self, text: str) -> None:
        self._chunks.append(text)

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def clear(self) -> None:
        self._chunks.clear()
