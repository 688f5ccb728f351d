"""
Tests for the stream buffer.
"""

import io

import pytest

from delimstream.streaming.buffer import StreamBuffer, detect_binary
from delimstream.utils.errors import MisuseError, SourceReadError
from tests.fixtures.streaming_fixtures import StreamingFixtures
from tests.utils.mock_helpers import ChunkedSource, FailingSource, MockSocket, NonBlockingSource


class TestDetectBinary:
    """Test data type detection."""

    def test_io_types(self, tmp_path):
        assert detect_binary(io.BytesIO()) is True
        assert detect_binary(io.StringIO()) is False

        path = tmp_path / "data.txt"
        path.write_text("x")
        with open(path, "r") as fh:
            assert detect_binary(fh) is False
        with open(path, "rb") as fh:
            assert detect_binary(fh) is True

    def test_mode_attribute(self):
        assert detect_binary(ChunkedSource([], mode="r")) is False
        assert detect_binary(ChunkedSource([], mode="rb")) is True

    def test_unknown_sources_are_binary(self):
        assert detect_binary(MockSocket(b"")) is True


class TestFill:
    """Test reading from the source."""

    def test_fill_appends(self):
        """Test that each fill appends one chunk."""
        buffer = StreamBuffer(ChunkedSource([b"ab", b"cde"]))
        assert buffer.fill(10) == 2
        assert buffer.fill(10) == 3
        assert buffer.peek() == b"abcde"
        assert len(buffer) == 5

    def test_fill_after_exhaustion(self):
        """Test that exhaustion is reported repeatedly."""
        buffer = StreamBuffer(io.BytesIO(b"x"))
        buffer.fill(4)
        assert buffer.fill(4) == 0
        assert buffer.exhausted is True
        assert buffer.fill(4) == 0
        assert buffer.peek() == b"x"

    def test_exhaustion_is_not_sticky(self):
        """Test that a source producing data again clears exhaustion."""
        buffer = StreamBuffer(ChunkedSource([b"a", b"", b"b"]))
        buffer.fill(1)
        assert buffer.fill(1) == 0
        assert buffer.fill(1) == 1
        assert buffer.exhausted is False
        assert buffer.peek() == b"ab"

    @pytest.mark.parametrize("size", [1, 2, 5, 100])
    def test_fill_size_does_not_change_content(self, size):
        """Test that data is the same however it is split into reads."""
        payload = StreamingFixtures.create_csv_payload().encode()
        buffer = StreamBuffer(io.BytesIO(payload))
        while buffer.fill(size):
            pass
        assert buffer.peek() == payload

    def test_recv_source(self):
        """Test a socket-like source."""
        buffer = StreamBuffer(MockSocket(b"hello", packet_size=2))
        assert buffer.fill(8) == 2
        assert buffer.fill(8) == 2
        assert buffer.fill(8) == 1
        assert buffer.fill(8) == 0
        assert buffer.peek() == b"hello"

    def test_none_from_source(self):
        """Test that a non-blocking read is rejected."""
        buffer = StreamBuffer(NonBlockingSource())
        with pytest.raises(SourceReadError):
            buffer.fill(4)

    def test_type_mismatch(self):
        """Test that str data in binary mode is rejected."""
        buffer = StreamBuffer(ChunkedSource(["text"], mode="rb"))
        with pytest.raises(SourceReadError):
            buffer.fill(4)

        buffer = StreamBuffer(io.BytesIO(b"bytes"), binary=False)
        with pytest.raises(SourceReadError):
            buffer.fill(4)

    def test_source_errors_propagate(self):
        """Test that source exceptions are not wrapped."""
        error = ConnectionResetError("peer went away")
        buffer = StreamBuffer(FailingSource([b"ok"], error=error))
        buffer.fill(4)
        with pytest.raises(ConnectionResetError) as exc_info:
            buffer.fill(4)
        assert exc_info.value is error
        assert buffer.peek() == b"ok"

    def test_no_reader(self):
        with pytest.raises(SourceReadError):
            StreamBuffer(object())


class TestConsume:
    """Test removing data from the front of the buffer."""

    def test_consume_prefix(self):
        buffer = StreamBuffer(io.StringIO("abcdef"))
        buffer.fill(10)
        assert buffer.consume(2) == "ab"
        assert buffer.peek() == "cdef"
        assert buffer.peek(2) == "cd"

    def test_consume_more_than_buffered(self):
        buffer = StreamBuffer(io.BytesIO(b"abc"))
        buffer.fill(10)
        assert buffer.consume(10) == b"abc"
        assert buffer.size == 0

    def test_drain(self):
        buffer = StreamBuffer(io.BytesIO(b"abc"))
        buffer.fill(2)
        assert buffer.drain() == b"ab"
        assert buffer.drain() == b""

    def test_peek_returns_copy(self):
        """Test that peeked bytes do not change with the buffer."""
        buffer = StreamBuffer(io.BytesIO(b"abc"))
        buffer.fill(3)
        snapshot = buffer.peek()
        buffer.consume(1)
        assert snapshot == b"abc"
        assert isinstance(snapshot, bytes)

    def test_accounting(self):
        """Test that appended data is either consumed or still buffered."""
        buffer = StreamBuffer(io.BytesIO(b"0123456789"))
        buffer.fill(4)
        buffer.consume(3)
        buffer.fill(4)
        buffer.consume(2)

        stats = buffer.get_stats()
        assert stats["total_appended"] == 8
        assert stats["total_consumed"] == 5
        assert stats["current_size"] == 3
        assert stats["total_appended"] == stats["total_consumed"] + stats["current_size"]
        assert stats["fill_count"] == 2


class TestLifecycle:
    """Test closing the buffer."""

    def test_close_closes_source(self):
        source = ChunkedSource([b"x"])
        buffer = StreamBuffer(source)
        buffer.close()
        buffer.close()
        assert source.closed
        assert buffer.get_stats()["closed"] is True

    def test_close_without_source_close(self):
        buffer = StreamBuffer(NonBlockingSource())
        buffer.close()
        assert buffer.closed

    def test_fill_after_close(self):
        buffer = StreamBuffer(io.BytesIO(b"x"))
        buffer.close()
        with pytest.raises(MisuseError):
            buffer.fill(1)
        with pytest.raises(MisuseError):
            buffer.ensure_open()
