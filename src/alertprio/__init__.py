"""Security alert prioritizer: scoring, cleaning and IP auto-blocking over alert batches."""

__version__ = "1.0.0"
