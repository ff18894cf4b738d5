"""chessbook: annotated opening lines and UCI engine analysis."""

__version__ = "0.1.0"
