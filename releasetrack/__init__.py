"""Track GitHub releases and install platform-compatible binaries."""

__version__ = "1.0.1"