"""Table hold and reservation engine for a single venue."""

__version__ = "1.0.0"
