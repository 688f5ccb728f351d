"""
Mock sources for testing.
"""

from typing import Iterable, List, Optional, Union

Chunk = Union[bytes, str]


class ChunkedSource:
    """Source that hands out pre-cut chunks, ignoring the requested size.

    Records every requested length so tests can check how often and how much
    the reader asked for.
    """

    def __init__(self, chunks: Iterable[Chunk], mode: str = "rb"):
        self._chunks: List[Chunk] = list(chunks)
        self.mode = mode
        self.requests: List[int] = []
        self.written: List[Chunk] = []
        self.closed = False

    def read(self, size: int = -1) -> Chunk:
        self.requests.append(size)
        if not self._chunks:
            return b"" if "b" in self.mode else ""
        return self._chunks.pop(0)

    def write(self, data: Chunk) -> int:
        self.written.append(data)
        return len(data)

    def close(self) -> None:
        self.closed = True


class FailingSource:
    """Source that raises after handing out some data."""

    def __init__(self, chunks: Iterable[bytes], error: Optional[Exception] = None):
        self._chunks = list(chunks)
        self.error = error or OSError("connection reset")

    def read(self, size: int = -1) -> bytes:
        if not self._chunks:
            raise self.error
        return self._chunks.pop(0)


class NonBlockingSource:
    """Source that behaves like a non-blocking raw stream with no data ready."""

    def read(self, size: int = -1) -> None:
        return None


class MockSocket:
    """Socket-like source exposing recv/sendall only."""

    def __init__(self, payload: bytes, packet_size: int = 4):
        self._payload = payload
        self._packet_size = packet_size
        self.sent = bytearray()
        self.closed = False

    def recv(self, size: int) -> bytes:
        size = min(size, self._packet_size)
        packet, self._payload = self._payload[:size], self._payload[size:]
        return packet

    def sendall(self, data: bytes) -> None:
        self.sent.extend(data)

    def close(self) -> None:
        self.closed = True


class StrLike:
    """Object whose string form changes after construction."""

    def __init__(self, value: str):
        self.value = value

    def __str__(self) -> str:
        return self.value
