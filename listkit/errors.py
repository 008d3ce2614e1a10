"""
Error types.

Responsibility: the failure taxonomy shared by all components.
Absence of a search result is not an error and has no class here.
"""

import numpy as np


class ListkitError(Exception):
    """Base class for toolkit failures."""


class InvalidArgument(ListkitError, ValueError):
    """Malformed input, raised before any work begins."""


class TransformFailure(ListkitError):
    """
    A per-element transform raised inside parallel_map.

    The original exception is chained as ``__cause__``; the worker's
    formatted traceback is kept as ``worker_traceback``.
    """

    def __init__(self, index: int, element, message: str = None,
                 worker_traceback: str = None):
        self.index = index
        self.element = element
        self.worker_traceback = worker_traceback
        if message is None:
            message = f"transform failed at index {index} (element={element!r})"
        super().__init__(message)


def require_int(name: str, value, minimum: int) -> int:
    """Return ``value`` as a Python int, or raise InvalidArgument."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgument(f"{name} must be >= {minimum}, got {value}")
    return int(value)
