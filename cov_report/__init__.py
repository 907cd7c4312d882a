"""Coverage report classification for single source files."""

__version__ = "0.1.0"
