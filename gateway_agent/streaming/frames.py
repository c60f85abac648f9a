"""Splitting of a chunked response body into blank-line delimited frames."""

from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

FRAME_BOUNDARY = b"\n\n"


class FrameDecoder:
    """Incremental frame splitter over an owned byte buffer.

    Chunks are appended to a single ``bytearray``; a read cursor marks the start
    of the first frame not yet emitted. Consumed bytes are only dropped once the
    cursor has moved far enough that compacting is worth the copy.
    """

    def __init__(self, encoding: str = "utf-8", compact_threshold: int = 64 * 1024):
        self._encoding = encoding
        self._compact_threshold = compact_threshold
        self._buffer = bytearray()
        self._cursor = 0
        # Where the next boundary search starts, so bytes are not rescanned
        self._scan_from = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes that do not yet form a complete frame."""
        return len(self._buffer) - self._cursor

    def feed(self, chunk: bytes | str) -> list[str]:
        """Append a chunk and return every frame it completes, in order."""
        if isinstance(chunk, str):
            chunk = chunk.encode(self._encoding)
        self._buffer += chunk

        frames: list[str] = []
        while True:
            index = self._buffer.find(FRAME_BOUNDARY, self._scan_from)
            if index < 0:
                # A boundary may straddle this chunk and the next one
                self._scan_from = max(self._cursor, len(self._buffer) - len(FRAME_BOUNDARY) + 1)
                break

            frame = self._buffer[self._cursor : index].decode(self._encoding, errors="replace")
            self._cursor = index + len(FRAME_BOUNDARY)
            self._scan_from = self._cursor
            if frame.strip():
                frames.append(frame)

        self._compact()
        return frames

    def finish(self) -> str | None:
        """Report trailing content that never saw a frame boundary.

        The trailing bytes are not a protocol frame; they are returned (and
        logged) for diagnostics only, and the buffer is reset.
        """
        remainder = self._buffer[self._cursor :].decode(self._encoding, errors="replace")
        self._buffer.clear()
        self._cursor = 0
        self._scan_from = 0

        if remainder.strip():
            logger.warning(f"Discarding {len(remainder)} characters of unterminated content: {remainder[:100]!r}")
            return remainder
        return None

    def _compact(self) -> None:
        if self._cursor == 0:
            return
        if self._cursor == len(self._buffer) or self._cursor >= self._compact_threshold:
            del self._buffer[: self._cursor]
            self._scan_from -= self._cursor
            self._cursor = 0

