"""
Pytest configuration and shared fixtures for delimstream tests.
"""

import io
import logging
import sys
from pathlib import Path

import pytest
import structlog

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from delimstream import wrap
from tests.fixtures.streaming_fixtures import StreamingFixtures


@pytest.fixture
def sample_text() -> str:
    """The stream used by the walkthrough scenarios."""
    return StreamingFixtures.SAMPLE_TEXT


@pytest.fixture
def text_stream(sample_text):
    """Handler/adapter pair over the sample text, read 4 characters at a time."""
    return wrap(io.StringIO(sample_text), read_length=4)


@pytest.fixture
def binary_stream(sample_text):
    """Handler/adapter pair over the sample text as bytes."""
    return wrap(io.BytesIO(sample_text.encode()), read_length=4)


@pytest.fixture
def restore_logging():
    """Undo global logging changes made by ``setup_logging``."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
