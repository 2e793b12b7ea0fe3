"""Golf ball detection over video frames and photos."""

__version__ = "0.1.0"
