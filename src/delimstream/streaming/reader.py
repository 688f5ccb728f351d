"""
Record reading for delimstream.

This module provides:
- Separator-delimited record reading with the separator kept on each record
- The handler object returned by ``wrap`` (``find``, ``read_line``,
  ``fill_buffer``)
- Convenience constructors for wrapping sources and opening files
"""

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .adapter import StreamAdapter
from .buffer import StreamBuffer, Data
from .matcher import PatternMatcher, FindResult
from .terms import PatternSet
from ..utils.config import StreamConfig, make_stream_config
from ..utils.logging import get_logger
from ..utils.errors import error_context

logger = get_logger("delimstream.reader")

# Used when neither the call nor the configuration names a separator
DEFAULT_SEPARATOR = PatternSet.of("\n")


class RecordReader:
    """Reads separator-terminated records from a matcher."""

    def __init__(self, matcher: PatternMatcher, separator: Optional[PatternSet] = None):
        """
        Initialize record reader.

        Args:
            matcher: Matcher over the shared buffer
            separator: Record separator (``DEFAULT_SEPARATOR`` if None)
        """
        self.matcher = matcher
        self.buffer = matcher.buffer
        self._separator = separator
        self._records_read = 0

    @property
    def separator(self) -> PatternSet:
        """Separator used when ``read_line`` is called without one."""
        return self._separator if self._separator is not None else DEFAULT_SEPARATOR

    @separator.setter
    def separator(self, value: Any) -> None:
        self._separator = None if value is None else PatternSet.of(value)

    def read_line(self, separator: Any = None) -> Optional[Data]:
        """
        Read the next record.

        A record is everything up to and including the next separator match.
        At end of stream whatever is left in the buffer is returned as a
        final record without a separator.

        Args:
            separator: Separator for this call only

        Returns:
            Record, or None once the stream is exhausted
        """
        terms = self.separator if separator is None else PatternSet.of(separator)
        result = self.matcher.find(terms)
        if result is not None:
            self._records_read += 1
            return result.prefix + result.match

        remainder = self.buffer.drain()
        if not remainder:
            return None

        self._records_read += 1
        logger.debug("partial_record_drained", length=len(remainder))
        return remainder

    readline = read_line

    def readlines(self, separator: Any = None) -> List[Data]:
        """Read all remaining records."""
        records = []
        while True:
            record = self.read_line(separator)
            if record is None:
                return records
            records.append(record)

    def __iter__(self) -> Iterator[Data]:
        while True:
            record = self.read_line()
            if record is None:
                return
            yield record


class StreamHandler(RecordReader):
    """Pattern-searching side of a wrapped stream."""

    def __init__(self, matcher: PatternMatcher, config: StreamConfig):
        super().__init__(matcher, config.separator)
        self.config = config

    @property
    def read_length(self) -> int:
        return self.matcher.read_length

    @property
    def encoding(self) -> str:
        return self.matcher.encoding

    @property
    def binary(self) -> bool:
        return self.buffer.binary

    @property
    def closed(self) -> bool:
        return self.buffer.closed

    def find(self, *terms: Any) -> Optional[FindResult]:
        """
        Find the first occurrence of any of ``terms`` in the stream.

        See ``PatternMatcher.find``.
        """
        return self.matcher.find(*terms)

    def fill_buffer(self, length: Optional[int] = None) -> int:
        """Read more data from the source; returns 0 once it is exhausted."""
        return self.matcher.fill_buffer(length)

    def stats(self) -> Dict[str, Any]:
        """Get handler statistics."""
        stats = self.buffer.get_stats()
        stats["records_read"] = self._records_read
        stats["read_length"] = self.read_length
        return stats

    def close(self) -> None:
        """Close the stream and its source. Safe to call more than once."""
        self.buffer.close()

    def __enter__(self) -> "StreamHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def wrap(
    source: Any,
    config: Optional[Union[StreamConfig, Dict[str, Any]]] = None,
    **overrides
) -> Tuple[StreamHandler, StreamAdapter]:
    """
    Wrap a readable source for delimiter-based reading.

    Args:
        source: Object with ``read(n)`` or ``recv(n)``
        config: Stream configuration or mapping of settings
        **overrides: Settings applied on top of ``config``
            (``read_length``, ``separator``, ``encoding``, ``binary``,
            ``max_buffer_size``)

    Returns:
        ``(handler, adapter)`` sharing one buffer
    """
    with error_context("reader", "wrap"):
        stream_config = make_stream_config(config, **overrides)
        buffer = StreamBuffer(source, binary=stream_config.binary)

    matcher = PatternMatcher(
        buffer,
        read_length=stream_config.read_length,
        encoding=stream_config.encoding,
        max_buffer_size=stream_config.max_buffer_size
    )
    handler = StreamHandler(matcher, stream_config)

    logger.debug(
        "stream_wrapped",
        source_type=type(source).__name__,
        binary=buffer.binary,
        read_length=stream_config.read_length,
        separator=repr(handler.separator)
    )
    return handler, StreamAdapter(handler)


def open_stream(
    path: Union[str, Path],
    mode: str = "rb",
    config: Optional[Union[StreamConfig, Dict[str, Any]]] = None,
    **overrides
) -> Tuple[StreamHandler, StreamAdapter]:
    """
    Open a file and wrap it. Closing the handler or adapter closes the file.

    Args:
        path: File to open
        mode: ``"rb"`` for bytes records or ``"r"`` for text records
        config: Stream configuration or mapping of settings
        **overrides: Settings applied on top of ``config``
    """
    stream_config = make_stream_config(config, **overrides)
    if "b" in mode:
        fh = open(path, mode)
    else:
        fh = open(path, mode, encoding=stream_config.encoding, newline="")

    try:
        return wrap(fh, stream_config)
    except Exception:
        fh.close()
        raise


__all__ = [
    'DEFAULT_SEPARATOR',
    'RecordReader',
    'StreamHandler',
    'wrap',
    'open_stream',
]
