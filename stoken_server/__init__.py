"""Quest For Stoken score server and weekly reward engine."""

__version__ = "1.0.0"
