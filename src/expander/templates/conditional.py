"""Conditional blocks: output that is kept only if a replacement produced text."""

from typing import List, Optional


class OutputBuffer:
    """Append-only text buffer that can be rolled back to an earlier mark."""

    def __init__(self) -> None:
        self._parts: List[str] = []
        self._length = 0

    def append(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)

    def mark(self) -> int:
        """Return a mark for the current end of the buffer."""
        return len(self._parts)

    def rollback(self, mark: int) -> None:
        """Discard everything appended since ``mark`` was taken."""
        del self._parts[mark:]
        self._length = sum(len(part) for part in self._parts)

    def __len__(self) -> int:
        return self._length

    def getvalue(self) -> str:
        return "".join(self._parts)


class ConditionalBlock:
    """Tracks the single open conditional block, if any.

    ``{?}`` opens a block (closing any block already open) and ``{.}``
    closes it. When a block ends without any replacement having produced
    non-empty text, everything written since it opened is discarded. A
    block still open at the end of the template is settled the same way.
    """

    def __init__(self, buffer: OutputBuffer) -> None:
        self.buffer = buffer
        self.marker: Optional[int] = None
        self.satisfied = False

    @property
    def is_open(self) -> bool:
        return self.marker is not None

    def open(self) -> None:
        self._settle()
        self.marker = self.buffer.mark()
        self.satisfied = False

    def close(self) -> None:
        self._settle()
        self.marker = None
        self.satisfied = False

    def record(self, result: str) -> None:
        """Note the output of an evaluated replacement token."""
        self.satisfied = self.satisfied or result != ""

    def finish(self) -> None:
        self._settle()
        self.marker = None

    def _settle(self) -> None:
        if self.marker is not None and not self.satisfied:
            self.buffer.rollback(self.marker)
