"""
delimstream - Main entry point for python -m delimstream
"""

from delimstream.cli import main

if __name__ == "__main__":
    main()
