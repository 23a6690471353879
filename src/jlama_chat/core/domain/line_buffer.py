"""
Incremental line reassembly for chunked byte streams.

Transport chunks arrive on arbitrary boundaries: a line may span several
chunks, and one chunk may carry many lines plus the start of the next. The
``LineBuffer`` keeps exactly the text after the last newline seen so far and
hands back every line as soon as its terminating newline arrives.
"""

from __future__ import annotations

import codecs


class LineBuffer:
    """Mutable per-stream state holding the unterminated tail of the text.

    Bytes are decoded with an incremental decoder, so a multi-byte character
    split across two chunks is held back until its last byte arrives. Invalid
    byte sequences decode to U+FFFD wherever the chunks were cut.
    """

    def __init__(self, encoding: str = "utf-8", errors: str = "replace") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors=errors)
        self._partial = ""

    @property
    def pending(self) -> str:
        """The text received after the last newline."""
        return self._partial

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and return the lines it completed, in order.

        The returned lines do not include the newline character. The last
        segment of the split is never returned; it stays buffered until a
        later chunk terminates it or the stream ends.
        """
        text = self._decoder.decode(chunk)
        if not text:
            return []
        lines = (self._partial + text).split("\n")
        self._partial = lines.pop()
        return lines

    def flush(self) -> str:
        """Finish decoding and return whatever never saw a newline.

        The buffer is empty afterwards.
        """
        remainder = self._partial + self._decoder.decode(b"", final=True)
        self._partial = ""
        return remainder
