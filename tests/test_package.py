"""
Tests for the package surface.
"""

import warnings
from pathlib import Path

import delimstream

PACKAGE_DIR = Path(delimstream.__file__).parent


class TestPackage:
    """Test the top-level package."""

    def test_sources_compile_without_warnings(self):
        """Test that no module triggers escape sequence warnings."""
        for path in sorted(PACKAGE_DIR.rglob("*.py")):
            with warnings.catch_warnings():
                warnings.simplefilter("error")
                compile(path.read_text(encoding="utf-8"), str(path), "exec")

    def test_public_names(self):
        for name in delimstream.__all__:
            assert hasattr(delimstream, name)
        assert delimstream.__version__
