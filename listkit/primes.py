"""
Prime generation by repeated elimination.

Responsibility: prime generation only. No searching, no parallel dispatch.

The candidate set starts as [1 .. n]. Each factor f in [2 .. isqrt(n)] is
applied in ascending order and keeps only the candidates that equal f or are
not divisible by f. Every pass builds a new array; nothing is filtered in
place.
"""

from math import isqrt

import numpy as np

from .errors import require_int


def survives(factor: int, values: np.ndarray) -> np.ndarray:
    """
    Return the mask of values that survive elimination by ``factor``.

    A value survives if it is the factor itself or is not a multiple of it.
    """
    return (values == factor) | (values % factor != 0)


def remove_multiples(factors, candidates: np.ndarray) -> np.ndarray:
    """
    Apply each factor in order to the candidate array.

    Parameters
    ----------
    factors : iterable of int
        Factors, consumed head to tail. Each is used exactly once.
    candidates : np.ndarray
        Working candidate set. Not modified.

    Returns
    -------
    np.ndarray
        Candidates surviving every factor.
    """
    survivors = candidates
    for f in factors:
        survivors = survivors[survives(f, survivors)]
    return survivors


def primes_up_to(n: int) -> np.ndarray:
    """
    Return ascending array of all primes <= n.

    Parameters
    ----------
    n : int
        Upper bound (inclusive), n >= 0.

    Returns
    -------
    np.ndarray
        int64 array of primes. Empty for n < 2.

    Raises
    ------
    InvalidArgument
        If n is negative or not an integer.
    """
    n = require_int("n", n, 0)
    if n < 2:
        return np.empty(0, dtype=np.int64)

    candidates = np.arange(1, n + 1, dtype=np.int64)
    factors = range(2, isqrt(n) + 1)
    survivors = remove_multiples(factors, candidates)

    # 1 is never eliminated by any factor
    return survivors[survivors != 1]


def prime_flags_up_to(n: int) -> np.ndarray:
    """
    Return boolean array where flags[i] is True iff i is prime.

    Length is n + 1.
    """
    n = require_int("n", n, 0)
    flags = np.zeros(n + 1, dtype=bool)
    flags[primes_up_to(n)] = True
    return flags
