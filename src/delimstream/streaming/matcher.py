"""
Incremental pattern matcher for delimstream.

``find`` searches the buffer for the leftmost occurrence of any of its terms,
pulling more data from the source until one matches or the source runs dry.
Each refill keeps everything already buffered, so a delimiter may straddle
two reads. The whole buffer is rescanned after every refill.

Caveat: a pattern without a bound on its match length (``.*``, ``\\s+`` at
the end of the data) keeps the buffer growing until the source is exhausted.
For an endless source that means unbounded memory unless ``max_buffer_size``
is set. A pattern that can match the empty string consumes only the prefix,
so repeated calls with it stop making progress.
"""

import re
from typing import Any, NamedTuple, Optional

from .buffer import StreamBuffer, Data
from .terms import PatternSet, compile_terms, matched_term_index
from ..utils.logging import get_logger
from ..utils.errors import BufferOverflowError

logger = get_logger("delimstream.matcher")


class FindResult(NamedTuple):
    """Data consumed by a successful ``find``."""
    prefix: Data
    match: Data


class PatternMatcher:
    """Finds delimiters in a buffered stream."""

    def __init__(
        self,
        buffer: StreamBuffer,
        read_length: int = 1024,
        encoding: str = "utf-8",
        max_buffer_size: Optional[int] = None
    ):
        """
        Initialize matcher.

        Args:
            buffer: Buffer shared with the stream adapter
            read_length: Units requested from the source per refill
            encoding: Encoding for converting between text and bytes terms
            max_buffer_size: Raise instead of refilling once this many units
                are buffered without a match (unbounded if None)
        """
        self.buffer = buffer
        self.read_length = read_length
        self.encoding = encoding
        self.max_buffer_size = max_buffer_size

    def fill_buffer(self, length: Optional[int] = None) -> int:
        """
        Read more data from the source into the buffer.

        Args:
            length: Units to request (defaults to ``read_length``)

        Returns:
            Units read; 0 means the source is exhausted
        """
        if length is not None and length < 0:
            raise ValueError(f"length must not be negative, got {length}")
        return self.buffer.fill(length or self.read_length)

    def compile(self, *terms: Any) -> "re.Pattern":
        """Compile ``terms`` for this buffer's data type."""
        return compile_terms(PatternSet.of(*terms), self.buffer.binary, self.encoding)

    def find(self, *terms: Any) -> Optional[FindResult]:
        """
        Consume the stream up to and including the first matching term.

        Literal arguments (``str``/``bytes``) match literally, compiled
        regexes match as patterns and any other object is matched as the
        literal ``str()`` of it. If several terms match at the same offset,
        the one passed first wins.

        Returns:
            ``(prefix, match)`` or None at end of stream, in which case the
            buffer is left untouched

        Raises:
            CompileError: If a term is malformed (nothing is consumed)
            BufferOverflowError: If ``max_buffer_size`` is reached first
        """
        self.buffer.ensure_open()
        pattern = self.compile(*terms)

        while True:
            match = self.buffer.search(pattern)
            if match is not None:
                break

            if self.max_buffer_size is not None and len(self.buffer) >= self.max_buffer_size:
                logger.warning(
                    "buffer_limit_reached",
                    buffered=len(self.buffer),
                    limit=self.max_buffer_size
                )
                raise BufferOverflowError(len(self.buffer), self.max_buffer_size)

            if not self.fill_buffer():
                logger.debug("end_of_stream", buffered=len(self.buffer))
                return None

        start, end = match.span()
        term_index = matched_term_index(match)
        prefix = self.buffer.consume(start)
        matched = self.buffer.consume(end - start)

        logger.debug(
            "term_matched",
            term_index=term_index,
            offset=start,
            length=end - start,
            buffered=len(self.buffer)
        )
        return FindResult(prefix, matched)


__all__ = ['PatternMatcher', 'FindResult']
