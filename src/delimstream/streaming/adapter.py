"""
File-like facade over a delimited stream.

The adapter shares its buffer with the ``StreamHandler`` it was created from,
so reads through either object consume the same data. Records returned by
``readline`` and iteration end with the handler's separator instead of a
newline.
"""

from typing import TYPE_CHECKING, Any, Iterator, List, Optional

from .buffer import Data
from .terms import encode_text
from ..utils.errors import UnsupportedOperationError

if TYPE_CHECKING:
    from .reader import StreamHandler


class StreamAdapter:
    """Generic read/write stream backed by a handler's buffer."""

    def __init__(self, handler: "StreamHandler"):
        self._handler = handler
        self._buffer = handler.buffer

    @property
    def handler(self) -> "StreamHandler":
        return self._handler

    @property
    def closed(self) -> bool:
        return self._buffer.closed

    def readable(self) -> bool:
        return not self.closed

    def writable(self) -> bool:
        source = self._buffer.source
        return hasattr(source, "write") or hasattr(source, "sendall")

    def seekable(self) -> bool:
        return False

    def read(self, size: Optional[int] = -1) -> Data:
        """
        Read up to ``size`` units, refilling from the source as needed.

        Returns fewer than ``size`` units only at end of stream. A negative
        or None ``size`` reads everything that is left.
        """
        self._buffer.ensure_open()

        if size is None or size < 0:
            while self._handler.fill_buffer():
                pass
            return self._buffer.drain()

        while len(self._buffer) < size:
            if not self._handler.fill_buffer():
                break
        return self._buffer.consume(size)

    def readinto(self, target: Any) -> int:
        """Read into a pre-allocated writable bytes-like object."""
        if not self._buffer.binary:
            raise UnsupportedOperationError("readinto")
        view = memoryview(target).cast("B")
        data = self.read(len(view))
        view[:len(data)] = data
        return len(data)

    def getc(self) -> Data:
        """Read a single unit; empty at end of stream."""
        return self.read(1)

    def readline(self, separator: Any = None) -> Data:
        """Next record, or empty at end of stream."""
        record = self._handler.read_line(separator)
        return self._buffer.empty if record is None else record

    def readlines(self, separator: Any = None) -> List[Data]:
        return self._handler.readlines(separator)

    def __iter__(self) -> Iterator[Data]:
        return self

    def __next__(self) -> Data:
        record = self._handler.read_line()
        if record is None:
            raise StopIteration
        return record

    def write(self, data: Data) -> int:
        """Write ``data`` to the underlying source, unbuffered."""
        return self._buffer.write(data)

    def print(self, *args: Any, sep: Any = None, end: Any = None) -> int:
        """Write ``args`` joined by ``sep`` and followed by ``end`` (both empty by default)."""
        parts = [self._coerce(arg) for arg in args]
        separator = self._coerce(sep) if sep is not None else self._buffer.empty
        data = separator.join(parts)
        if end is not None:
            data += self._coerce(end)
        return self.write(data)

    def printf(self, fmt: Any, *args: Any) -> int:
        """Write ``fmt % args``."""
        return self.write(self._coerce(fmt) % args)

    def _coerce(self, value: Any) -> Data:
        if self._buffer.binary:
            if isinstance(value, (bytes, bytearray, memoryview)):
                return bytes(value)
            return encode_text(str(value), self._handler.encoding)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode(self._handler.encoding)
        return str(value)

    def eof(self) -> bool:
        """True when nothing is buffered and the source has no more data.

        Probes the source once if the buffer is empty; probed data stays
        buffered for the next read.
        """
        self._buffer.ensure_open()
        if len(self._buffer):
            return False
        return self._handler.fill_buffer() == 0

    def fileno(self) -> int:
        return self._buffer.fileno()

    def seek(self, offset: int, whence: int = 0) -> int:
        raise UnsupportedOperationError("seek")

    def tell(self) -> int:
        raise UnsupportedOperationError("tell")

    def close(self) -> None:
        """Close the stream and its source. Safe to call more than once."""
        self._buffer.close()

    def __enter__(self) -> "StreamAdapter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<StreamAdapter {state} source={self._buffer.source!r}>"


__all__ = ['StreamAdapter']
