r"""
delimstream - regular expression delimited records from streams.

Wraps any readable source so it can be read as records ending in a literal
or regex separator, and searched for the first of several delimiters:

    handler, stream = delimstream.wrap(fh, separator=re.compile(rb"\s*,\s*"))
    for record in stream:
        ...
    prefix, match = handler.find(b"literal", re.compile(rb"regex"))

Data is pulled from the source ``read_length`` units at a time and only as
far as needed to find the next delimiter.
"""

__version__ = "1.0.0"

from .streaming import (
    DEFAULT_SEPARATOR,
    FindResult,
    Literal,
    Pattern,
    PatternSet,
    StreamAdapter,
    StreamHandler,
    open_stream,
    wrap,
)
from .utils.config import StreamConfig
from .utils.errors import (
    BufferOverflowError,
    CompileError,
    ConfigurationError,
    DelimStreamError,
    MisuseError,
    SourceReadError,
    UnsupportedOperationError,
)

__all__ = [
    'wrap',
    'open_stream',
    'StreamHandler',
    'StreamAdapter',
    'StreamConfig',
    'FindResult',
    'Literal',
    'Pattern',
    'PatternSet',
    'DEFAULT_SEPARATOR',
    'DelimStreamError',
    'SourceReadError',
    'CompileError',
    'MisuseError',
    'UnsupportedOperationError',
    'BufferOverflowError',
    'ConfigurationError',
]
