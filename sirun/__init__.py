"""A benchmark test runner: configuration, measurement, statsd collection and summaries."""

__version__ = "0.1.11"
__all__ = ["__version__"]