"""Pattern-delimited record reading over buffered streams."""

from .terms import Literal, Pattern, PatternSet, compile_terms
from .buffer import StreamBuffer
from .matcher import PatternMatcher, FindResult
from .adapter import StreamAdapter
from .reader import DEFAULT_SEPARATOR, RecordReader, StreamHandler, wrap, open_stream

__all__ = [
    "Literal",
    "Pattern",
    "PatternSet",
    "compile_terms",
    "StreamBuffer",
    "PatternMatcher",
    "FindResult",
    "StreamAdapter",
    "DEFAULT_SEPARATOR",
    "RecordReader",
    "StreamHandler",
    "wrap",
    "open_stream",
]
