"""
First-match search with an explicit optional result.

Responsibility: predicate search only.

A search either finds a value (``Found(value)``) or does not (``NOT_FOUND``).
Absence is a value, never None and never an exception.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Union


@dataclass(frozen=True)
class Found:
    """A search hit carrying its value."""

    value: Any

    @property
    def is_found(self) -> bool:
        return True

    def value_or(self, default):
        return self.value


@dataclass(frozen=True)
class NotFound:
    """No element matched."""

    @property
    def is_found(self) -> bool:
        return False

    def value_or(self, default):
        return default


NOT_FOUND = NotFound()

Option = Union[Found, NotFound]


def find_first(predicate: Callable[[Any], bool], sequence: Iterable) -> Option:
    """
    Return the first element of ``sequence`` satisfying ``predicate``.

    Elements after the first match are never passed to ``predicate``.
    Exceptions raised by ``predicate`` propagate unchanged.

    Parameters
    ----------
    predicate : callable
        Pure function element -> bool.
    sequence : iterable
        Scanned in its given order. May be a generator.

    Returns
    -------
    Found or NotFound
    """
    for element in sequence:
        if predicate(element):
            return Found(element)
    return NOT_FOUND


def keep_if_positive(a) -> Option:
    """Return Found(a) if a > 0, otherwise NOT_FOUND."""
    if a > 0:
        return Found(a)
    return NOT_FOUND
