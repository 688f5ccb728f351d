"""
Stream buffer for delimstream.

The buffer is the state shared by a handler and its adapter:
- The wrapped source and whether it has reported exhaustion
- Data read from the source but not yet consumed
- Append-only growth, prefix-only shrinkage
- Consumption accounting
"""

import io
import re
from typing import Any, Optional, Union

from ..utils.logging import get_logger
from ..utils.errors import MisuseError, SourceReadError, UnsupportedOperationError

logger = get_logger("delimstream.buffer")

Data = Union[bytes, str]


def detect_binary(source: Any) -> bool:
    """Guess whether ``source`` yields bytes (True) or str (False)."""
    if isinstance(source, io.TextIOBase):
        return False
    if isinstance(source, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(source, "mode", None)
    if isinstance(mode, str):
        return "b" in mode
    return True


class StreamBuffer:
    """Buffers data read from a source until it is consumed."""

    def __init__(self, source: Any, binary: Optional[bool] = None):
        """
        Initialize stream buffer.

        Args:
            source: Object with ``read(n)`` (or ``recv(n)``) to pull data from
            binary: Buffer bytes (True) or text (False); detected if None
        """
        reader = getattr(source, "read", None) or getattr(source, "recv", None)
        if reader is None:
            raise SourceReadError(
                f"{type(source).__name__} has neither read() nor recv()"
            )

        self.source = source
        self.binary = detect_binary(source) if binary is None else binary
        self.exhausted = False
        self.closed = False

        self._reader = reader
        self._data: Union[bytearray, str] = bytearray() if self.binary else ""

        # Stats
        self._total_appended = 0
        self._total_consumed = 0
        self._fill_count = 0

    @property
    def empty(self) -> Data:
        """Empty value of the buffer's data type."""
        return b"" if self.binary else ""

    @property
    def size(self) -> int:
        """Units currently buffered."""
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def ensure_open(self) -> None:
        """Raise if the stream has been closed."""
        if self.closed:
            raise MisuseError("I/O operation on closed stream")

    def fill(self, length: int) -> int:
        """
        Read once from the source and append what arrives.

        Args:
            length: Maximum units to request

        Returns:
            Units appended; 0 once the source is exhausted

        Raises:
            SourceReadError: If the source returns the wrong type or no data
                without signalling end of stream
        """
        self.ensure_open()

        # Exceptions raised by the source propagate unchanged
        chunk = self._reader(length)

        if chunk is None:
            raise SourceReadError(
                "Source returned None; non-blocking sources are not supported"
            )
        if not chunk:
            if not self.exhausted:
                logger.debug("source_exhausted", total_appended=self._total_appended)
            self.exhausted = True
            return 0

        if self.binary and isinstance(chunk, str):
            raise SourceReadError(
                "Source returned str in binary mode; wrap with binary=False"
            )
        if not self.binary and not isinstance(chunk, str):
            raise SourceReadError(
                f"Source returned {type(chunk).__name__} in text mode; wrap with binary=True"
            )

        self._data += chunk
        self.exhausted = False
        count = len(chunk)
        self._total_appended += count
        self._fill_count += 1
        logger.debug("buffer_filled", units=count, buffered=len(self._data))
        return count

    def search(self, pattern: "re.Pattern") -> Optional["re.Match"]:
        """Leftmost match of ``pattern`` anywhere in the buffer."""
        return pattern.search(self._data)

    def peek(self, end: Optional[int] = None) -> Data:
        """Copy of buffered data up to ``end`` without consuming it."""
        data = self._data[:end]
        return bytes(data) if self.binary else data

    def consume(self, count: int) -> Data:
        """Remove and return the first ``count`` units."""
        count = min(count, len(self._data))
        taken = self.peek(count)
        if self.binary:
            del self._data[:count]
        else:
            self._data = self._data[count:]
        self._total_consumed += count
        return taken

    def drain(self) -> Data:
        """Remove and return everything buffered."""
        return self.consume(len(self._data))

    def write(self, data: Data) -> int:
        """Pass ``data`` straight through to the source."""
        self.ensure_open()
        writer = getattr(self.source, "write", None)
        if writer is not None:
            written = writer(data)
            return len(data) if written is None else written
        sendall = getattr(self.source, "sendall", None)
        if sendall is not None:
            sendall(data)
            return len(data)
        raise UnsupportedOperationError("write")

    def fileno(self) -> int:
        """File descriptor of the source."""
        self.ensure_open()
        fileno = getattr(self.source, "fileno", None)
        if fileno is None:
            raise UnsupportedOperationError("fileno")
        return fileno()

    def close(self) -> None:
        """Close the source. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        close = getattr(self.source, "close", None)
        if close is not None:
            close()
        logger.debug(
            "stream_closed",
            total_appended=self._total_appended,
            total_consumed=self._total_consumed,
            discarded=len(self._data)
        )

    def get_stats(self) -> dict:
        """Get buffer statistics."""
        return {
            "current_size": len(self._data),
            "binary": self.binary,
            "total_appended": self._total_appended,
            "total_consumed": self._total_consumed,
            "fill_count": self._fill_count,
            "exhausted": self.exhausted,
            "closed": self.closed
        }


# Export public API
__all__ = ['StreamBuffer', 'detect_binary']
