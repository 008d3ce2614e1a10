"""
Tests for the order-preserving parallel map.

Process-backend tests use builtins and module-level functions so the
transform pickles. Lambdas are only used with the thread backend.
"""

import math
import operator
import threading
import time
from functools import partial
from multiprocessing.pool import RemoteTraceback

import numpy as np
import pytest

from listkit.errors import InvalidArgument, TransformFailure
from listkit.fibonacci import fibonacci, fibonacci_mod
from listkit.parallel_map import default_worker_count, parallel_init, parallel_map


# Module-level so the process backend can pickle them

class HoldsLock(Exception):
    """Exception that cannot be pickled."""

    def __init__(self, message):
        super().__init__(message)
        self.lock = threading.Lock()


class NeedsTwoArgs(Exception):
    """Pickles, but cannot be rebuilt from its args."""

    def __init__(self, left, right):
        super().__init__(f"{left}/{right}")


def raise_holds_lock(x):
    raise HoldsLock(f"boom {x}")


def raise_needs_two_args(x):
    raise NeedsTwoArgs(x, x + 1)


def return_lock(x):
    return threading.Lock()


class TestOrdering:

    def test_matches_sequential_map(self):
        data = list(range(-50, 50))
        assert parallel_map(abs, data, num_workers=4) == [abs(x) for x in data]

    def test_fibonacci_matches_sequential(self):
        data = range(200)
        expected = [fibonacci_mod(x, 20) for x in data]
        result = parallel_map(partial(fibonacci_mod, modulus=20), data, num_workers=4)
        assert result == expected

    def test_one_worker_equals_eight(self):
        data = list(range(300))
        transform = partial(fibonacci_mod, modulus=18)
        assert parallel_map(transform, data, num_workers=1) == \
            parallel_map(transform, data, num_workers=8)

    def test_order_kept_when_completion_is_reversed(self):
        """Earlier elements sleep longer, so they finish last."""
        data = [0.05, 0.04, 0.03, 0.02, 0.01, 0.0]

        def slow_identity(delay):
            time.sleep(delay)
            return delay

        assert parallel_map(slow_identity, data, num_workers=6, backend='thread') == data

    def test_numpy_input(self):
        data = np.arange(10)
        assert parallel_map(operator.neg, data, num_workers=2) == [-x for x in range(10)]

    def test_thread_backend_with_lambda(self):
        assert parallel_map(lambda x: x * x, range(20), num_workers=3, backend='thread') == \
            [x * x for x in range(20)]

    def test_chunksize(self):
        data = list(range(1000))
        assert parallel_map(abs, data, num_workers=2, chunksize=64) == data


class TestDegenerateCases:

    def test_empty_input(self):
        assert parallel_map(abs, []) == []
        assert parallel_map(abs, [], num_workers=1, backend='thread') == []

    def test_more_workers_than_elements(self):
        assert parallel_map(abs, [-1, -2], num_workers=64) == [1, 2]

    def test_single_element(self):
        assert parallel_map(str, [42], num_workers=4) == ['42']

    def test_default_worker_count(self):
        assert parallel_map(abs, [-3, 3]) == [3, 3]

    def test_transform_not_called_for_empty_input(self):
        calls = []
        assert parallel_map(calls.append, [], backend='thread') == []
        assert calls == []


class TestInvalidArgument:

    @pytest.mark.parametrize("workers", [0, -1])
    def test_non_positive_workers(self, workers):
        with pytest.raises(InvalidArgument):
            parallel_map(abs, [1, 2, 3], num_workers=workers)

    def test_zero_workers_empty_input(self):
        """Arguments are checked before the empty-input shortcut."""
        with pytest.raises(InvalidArgument):
            parallel_map(abs, [], num_workers=0)

    @pytest.mark.parametrize("workers", [1.5, "4", True])
    def test_non_integer_workers(self, workers):
        with pytest.raises(InvalidArgument):
            parallel_map(abs, [1], num_workers=workers)

    def test_unknown_backend(self):
        with pytest.raises(InvalidArgument, match="unknown backend"):
            parallel_map(abs, [1], backend='gpu')

    def test_bad_chunksize(self):
        with pytest.raises(InvalidArgument):
            parallel_map(abs, [1], chunksize=0)

    def test_no_work_started(self):
        calls = []
        with pytest.raises(InvalidArgument):
            parallel_map(calls.append, [1, 2], num_workers=0, backend='thread')
        assert calls == []


class TestTransformFailure:

    def test_failure_is_wrapped(self):
        with pytest.raises(TransformFailure) as info:
            parallel_map(math.sqrt, [4, -1, 9], num_workers=2)

        assert info.value.index == 1
        assert info.value.element == -1
        assert isinstance(info.value.__cause__, ValueError)

    def test_failure_in_thread_backend(self):
        def explode_on_seven(x):
            if x == 7:
                raise ZeroDivisionError("seven")
            return x

        with pytest.raises(TransformFailure) as info:
            parallel_map(explode_on_seven, range(20), num_workers=4, backend='thread')

        assert info.value.index == 7
        assert isinstance(info.value.__cause__, ZeroDivisionError)

    def test_no_partial_result(self):
        result = None
        with pytest.raises(TransformFailure):
            result = parallel_map(int, ['1', '2', 'x', '4'], num_workers=2)
        assert result is None

    def test_dispatch_stops_after_failure(self):
        """With one worker the failing element is the last one run."""
        seen = []
        lock = threading.Lock()

        def record(x):
            with lock:
                seen.append(x)
            if x == 2:
                raise ValueError("stop")
            time.sleep(0.01)
            return x

        with pytest.raises(TransformFailure):
            parallel_map(record, range(100), num_workers=1, backend='thread')

        assert seen[:3] == [0, 1, 2]
        assert len(seen) < 100, "work continued after the failure"

    def test_unpicklable_exception(self):
        with pytest.raises(TransformFailure) as info:
            parallel_map(raise_holds_lock, [1, 2], num_workers=1)

        cause = info.value.__cause__
        assert info.value.index == 0
        assert isinstance(cause, RuntimeError), f"cause was {cause!r}"
        assert "boom 1" in str(cause)
        assert "HoldsLock" in info.value.worker_traceback

    def test_unpicklable_result(self):
        with pytest.raises(TransformFailure) as info:
            parallel_map(return_lock, [1, 2], num_workers=1)

        assert info.value.index == 0
        assert isinstance(info.value.__cause__, RuntimeError)
        assert "cannot be sent back" in str(info.value.__cause__)

    def test_exception_that_cannot_be_rebuilt(self):
        with pytest.raises(TransformFailure) as info:
            parallel_map(raise_needs_two_args, [5], num_workers=1)

        assert isinstance(info.value.__cause__, RuntimeError)
        assert "could not be decoded" in str(info.value.__cause__)

    def test_unpicklable_exception_kept_with_threads(self):
        """No pickling happens with the thread backend."""
        with pytest.raises(TransformFailure) as info:
            parallel_map(raise_holds_lock, [1], num_workers=1, backend='thread')

        assert isinstance(info.value.__cause__, HoldsLock)


class TestWorkerTraceback:

    def test_process_traceback_kept(self):
        with pytest.raises(TransformFailure) as info:
            parallel_map(math.sqrt, [-1], num_workers=1)

        tb = info.value.worker_traceback
        assert "ValueError" in tb, f"worker traceback was {tb!r}"
        assert isinstance(info.value.__cause__.__cause__, RemoteTraceback)
        assert str(info.value.__cause__.__cause__) == tb

    def test_thread_traceback_kept(self):
        def divide(x):
            return 1 / x

        with pytest.raises(TransformFailure) as info:
            parallel_map(divide, [0], num_workers=1, backend='thread')

        assert "ZeroDivisionError" in info.value.worker_traceback
        assert "divide" in info.value.worker_traceback


class TestParallelInit:

    def test_fibonacci_terms(self):
        assert parallel_init(8, fibonacci, num_workers=2) == [0, 1, 2, 3, 5, 8, 13, 21]

    def test_zero_count(self):
        assert parallel_init(0, fibonacci) == []

    def test_negative_count(self):
        with pytest.raises(InvalidArgument):
            parallel_init(-1, fibonacci)


class TestDefaultWorkerCount:

    def test_positive(self):
        assert default_worker_count() >= 1

    def test_cap(self):
        assert default_worker_count(cap=1) == 1
        assert default_worker_count(cap=25) <= 25

    def test_bad_cap(self):
        with pytest.raises(InvalidArgument):
            default_worker_count(cap=0)
