"""
Exceptions raised by the descriptor pipeline.
"""


class InvalidArgumentError(ValueError):
    """Unsupported parameter value or mismatched array shapes."""


class UnsupportedSizeError(ValueError):
    """Image dimensions do not match the canonical detection window."""
