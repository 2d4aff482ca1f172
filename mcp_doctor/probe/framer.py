"""Newline framing for a subprocess's stdout stream."""

from typing import List


class LineFramer:
    """Splits an arbitrarily chunked byte stream into complete text lines.

    Bytes are buffered until a newline arrives, so a line split across reads is
    reassembled intact and a partial trailing line is never emitted. Blank lines
    are dropped. The buffer has no size limit of its own; it is bounded by the
    probe timeout, after which the framer is discarded with its process.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._buffer = b""

    def feed(self, chunk: bytes) -> List[str]:
        """Append a chunk and return every line it completed."""
        self._buffer += chunk
        *complete, self._buffer = self._buffer.split(b"\n")

        lines = []
        for raw in complete:
            line = raw.decode(self.encoding, errors="replace").strip()
            if line:
                lines.append(line)
        return lines

    @property
    def pending(self) -> bytes:
        """Bytes received after the last newline."""
        return self._buffer
