"""Global Insight Series backend."""

__version__ = "1.0.0"
