"""
Stream content fixtures.
"""

import random
from typing import List


class StreamingFixtures:
    """Fixtures for delimited stream testing."""

    SAMPLE_TEXT = "thisisastream a test stream, actually. Blah blah blah!"

    @staticmethod
    def create_csv_payload(rows: int = 20, columns: int = 4) -> str:
        """Create comma separated content with irregular spacing around commas."""
        rng = random.Random(rows * 31 + columns)
        lines = []
        for row in range(rows):
            cells = [f"r{row}c{col}" for col in range(columns)]
            spacing = [" " * rng.randint(0, 3) for _ in cells]
            lines.append(
                "".join(f"{cell}{pad},{pad}" for cell, pad in zip(cells, spacing)).rstrip(", ")
            )
        return "\n".join(lines)

    @staticmethod
    def create_record_stream(
        record_count: int = 50,
        separators: List[str] = None,
        seed: int = 7
    ) -> str:
        """Create records of random length joined by randomly chosen separators."""
        separators = separators or ["\n", "\r\n", "||", ";"]
        rng = random.Random(seed)
        parts = []
        for index in range(record_count):
            body = "".join(rng.choice("abcdefgh ") for _ in range(rng.randint(0, 40)))
            parts.append(f"{index}:{body}{rng.choice(separators)}")
        parts.append("tail-without-separator")
        return "".join(parts)

    @staticmethod
    def chunk(data, size: int) -> list:
        """Cut ``data`` into pieces of at most ``size`` units."""
        return [data[i:i + size] for i in range(0, len(data), size)]
