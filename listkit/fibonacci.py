"""
Naive recursive Fibonacci, used as a CPU-bound parallel workload.

The recursion is deliberately unmemoised. Note the base case returns n for
n <= 2, so fibonacci(2) == 2 and the sequence runs 0, 1, 2, 3, 5, 8, ...
"""

from functools import partial

from .errors import require_int
from .parallel_map import parallel_map


def _fib(n: int) -> int:
    if n <= 2:
        return n
    return _fib(n - 1) + _fib(n - 2)


def fibonacci(n: int) -> int:
    """Return the n-th term by naive recursion. n must be >= 0."""
    return _fib(require_int("n", n, 0))


def fibonacci_mod(n: int, modulus: int = 25) -> int:
    """Return fibonacci(n % modulus)."""
    modulus = require_int("modulus", modulus, 1)
    return _fib(int(n) % modulus)


def fibonacci_workload(numbers, modulus: int = 25, num_workers: int = None,
                       backend: str = 'process', chunksize: int = 1000) -> list:
    """
    Compute fibonacci(x % modulus) for every x in numbers, in parallel.

    Parameters
    ----------
    numbers : iterable of int
        Input values, e.g. range(100_001).
    modulus : int
        Keeps each recursion small enough to finish.
    num_workers : int, optional
        Defaults to CPU count.
    backend : str
        'process' or 'thread'.
    chunksize : int
        Elements per task. Single Fibonacci terms are too cheap to ship one
        at a time.

    Returns
    -------
    list
        Results in input order.
    """
    modulus = require_int("modulus", modulus, 1)
    return parallel_map(partial(fibonacci_mod, modulus=modulus), numbers,
                        num_workers=num_workers, backend=backend,
                        chunksize=chunksize)
