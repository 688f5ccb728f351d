"""
Test fixtures for delimstream.

Provides reusable stream content.
"""

from .streaming_fixtures import StreamingFixtures

__all__ = [
    "StreamingFixtures",
]
