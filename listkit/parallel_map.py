"""
Order-preserving parallel map.

Uses a multiprocessing pool to spread per-element work across CPU cores.

Layout of one call:
  - tasks are (transform, index, element, encode) tuples fed lazily to the
    pool's task queue through imap_unordered;
  - workers return (index, ok, payload) in completion order;
  - the caller thread writes each payload into a pre-sized result buffer at
    its own index, so the returned list is always in input order.

With the process backend, workers pickle their own payload before handing it
back. Results or exceptions that cannot cross the process boundary become a
RuntimeError stand-in, so they still surface as TransformFailure.

If any transform raises, no further tasks are collected, the pool is
terminated (in-flight work is cancelled) and a single TransformFailure is
raised, chained to the original exception. Partial results are never
returned.
"""

import logging
import os
import pickle
import traceback
from multiprocessing import Pool
from multiprocessing.pool import RemoteTraceback, ThreadPool
from typing import Any, Callable, Iterable, List, Tuple

from .errors import InvalidArgument, TransformFailure, require_int

logger = logging.getLogger(__name__)

BACKENDS = {
    'process': Pool,
    'thread': ThreadPool,
}


def default_worker_count(cap: int = None) -> int:
    """Return the number of CPUs on the host, optionally capped."""
    count = os.cpu_count() or 1
    if cap is not None:
        count = min(count, require_int("cap", cap, 1))
    return count


def _apply_indexed(args: Tuple[Callable, int, Any, bool]) -> Tuple[int, bool, Any]:
    """
    Run one task inside a worker.

    Must be at module level for pickling. Exceptions are returned rather than
    raised so the caller learns which index failed. A failure payload is
    (exception, formatted traceback). When ``encode`` is set the payload is
    returned as pickled bytes.
    """
    transform, index, element, encode = args
    try:
        ok, payload = True, transform(element)
    except Exception as exc:
        ok, payload = False, (exc, traceback.format_exc())

    if encode:
        try:
            payload = pickle.dumps(payload)
        except Exception as exc:
            if ok:
                error = RuntimeError(f"result cannot be sent back from worker: {exc!r}")
                tb = traceback.format_exc()
            else:
                error, tb = payload
                error = RuntimeError(f"{error!r} (not picklable: {exc!r})")
            ok, payload = False, pickle.dumps((error, tb))
    return index, ok, payload


def _decode(ok: bool, blob: bytes) -> Tuple[bool, Any]:
    """Unpickle a worker payload in the caller process."""
    try:
        return ok, pickle.loads(blob)
    except Exception as exc:
        error = RuntimeError(f"worker payload could not be decoded: {exc!r}")
        return False, (error, traceback.format_exc())


def _attach_remote_traceback(error: BaseException, tb: str) -> BaseException:
    """Chain the worker traceback the way Pool does for its own errors."""
    error.__cause__ = RemoteTraceback(tb)
    return error


def parallel_map(transform: Callable[[Any], Any], sequence: Iterable,
                 num_workers: int = None, backend: str = 'process',
                 chunksize: int = 1) -> List[Any]:
    """
    Apply ``transform`` to every element of ``sequence`` in parallel.

    Parameters
    ----------
    transform : callable
        Pure function element -> result with no dependency on other
        elements. With the process backend it must be picklable (a
        module-level function, builtin, or functools.partial of one).
    sequence : iterable
        Input elements. Consumed once, up front.
    num_workers : int, optional
        Maximum number of parallel workers. Defaults to CPU count.
        Fewer are started when the input is shorter.
    backend : str
        'process' (multiprocessing.Pool) or 'thread' (ThreadPool).
    chunksize : int
        Tasks handed to a worker at a time.

    Returns
    -------
    list
        transform(x) for each x, in input order.

    Raises
    ------
    InvalidArgument
        num_workers or chunksize not a positive integer, or unknown backend.
    TransformFailure
        A transform raised. ``__cause__`` holds the original exception, or a
        RuntimeError stand-in when it could not be sent back from a worker
        process. ``worker_traceback`` holds the formatted worker traceback.
    """
    if num_workers is None:
        num_workers = default_worker_count()
    num_workers = require_int("num_workers", num_workers, 1)
    chunksize = require_int("chunksize", chunksize, 1)
    if backend not in BACKENDS:
        raise InvalidArgument(f"unknown backend {backend!r}, expected one of {sorted(BACKENDS)}")

    items = list(sequence)
    if not items:
        return []

    workers = min(num_workers, len(items))
    results = [None] * len(items)
    encode = backend == 'process'
    tasks = ((transform, i, x, encode) for i, x in enumerate(items))

    logger.debug("parallel_map: %d elements, %d %s workers", len(items), workers, backend)

    with BACKENDS[backend](workers) as pool:
        for index, ok, payload in pool.imap_unordered(_apply_indexed, tasks, chunksize):
            if encode:
                ok, payload = _decode(ok, payload)
            if not ok:
                logger.debug("parallel_map: index %d failed, cancelling remaining work", index)
                # Leaving the with-block terminates the pool
                error, tb = payload
                if encode:
                    error = _attach_remote_traceback(error, tb)
                raise TransformFailure(index, items[index], worker_traceback=tb) from error
            results[index] = payload

    return results


def parallel_init(count: int, fn: Callable[[int], Any], num_workers: int = None,
                  backend: str = 'process') -> List[Any]:
    """Return [fn(0), fn(1), ..., fn(count - 1)] computed in parallel."""
    count = require_int("count", count, 0)
    return parallel_map(fn, range(count), num_workers=num_workers, backend=backend)
