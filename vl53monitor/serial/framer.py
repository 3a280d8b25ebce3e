"""
Line framer for the serial text stream

Accumulates decoded text chunks of arbitrary size and splits them into
complete lines on ``\\n`` / ``\\r\\n`` boundaries. Unterminated trailing
text is carried over to the next chunk and handed out by ``flush()`` at
stream end.
"""

from typing import List


class LineFramer:
    """
    Splits a chunked text stream into lines

    A ``\\r`` that arrives at the very end of a chunk stays buffered until
    the next chunk shows whether it belongs to a ``\\r\\n`` terminator, so
    emitted lines never carry a trailing ``\\r``.
    """

    def __init__(self):
        """Initialize with an empty partial-line buffer"""
        self._pending = ""

    @property
    def pending(self) -> str:
        """Unterminated text currently buffered"""
        return self._pending

    def feed(self, chunk: str) -> List[str]:
        """
        Add a chunk and return every line it completes

        Args:
            chunk: Decoded text, any length (may be empty)

        Returns:
            Complete lines in arrival order, without terminators
        """
        if not chunk:
            return []

        self._pending += chunk
        parts = self._pending.split("\n")

        # Last element is the (possibly empty) unterminated remainder
        self._pending = parts.pop()

        return [part.rstrip("\r") for part in parts]

    def flush(self) -> List[str]:
        """
        Drain the buffer at stream end

        Returns:
            The remaining partial line as a one-element list, or an empty
            list if nothing is buffered
        """
        remainder = self._pending.rstrip("\r")
        self._pending = ""

        if not remainder:
            return []
        return [remainder]

    def reset(self):
        """Discard buffered text"""
        self._pending = ""
