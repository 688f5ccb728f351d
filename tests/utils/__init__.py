"""
Test utilities for delimstream.
"""

from .mock_helpers import ChunkedSource, FailingSource, NonBlockingSource, MockSocket, StrLike

__all__ = [
    "ChunkedSource",
    "FailingSource",
    "NonBlockingSource",
    "MockSocket",
    "StrLike",
]
