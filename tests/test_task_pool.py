"""
Tests for bounded retry and the worker pool (utils/task_pool.py)
"""

import threading
from unittest.mock import patch

import pytest

from utils.task_pool import TaskFailed, TaskPoolError, retry_call, run_pool


class Flaky:
    """Callable failing a fixed number of times before succeeding."""

    def __init__(self, failures, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
            if self.calls <= self.failures:
                raise RuntimeError(f"failure {self.calls}")
        return self.result


class TestRetryCall:
    """Tests for retry_call()."""

    def test_first_success_returns(self):
        operation = Flaky(0)
        assert retry_call(operation, attempts=3, delay=0) == "ok"
        assert operation.calls == 1

    def test_retries_until_success(self):
        operation = Flaky(2)
        assert retry_call(operation, attempts=3, delay=0) == "ok"
        assert operation.calls == 3

    def test_exhaustion_wraps_last_error(self):
        operation = Flaky(5)
        with pytest.raises(TaskFailed) as exc:
            retry_call(operation, attempts=3, delay=0, name="flag fr")

        assert operation.calls == 3
        assert exc.value.attempts == 3
        assert str(exc.value.last_error) == "failure 3"

    @patch("utils.task_pool.time.sleep")
    def test_sleeps_only_between_attempts(self, mock_sleep):
        with pytest.raises(TaskFailed):
            retry_call(Flaky(5), attempts=3, delay=0.5)

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            retry_call(Flaky(0), attempts=0, delay=0)


class TestRunPool:
    """Tests for run_pool()."""

    def test_all_results_are_collected(self):
        tasks = {key: Flaky(1, result=key.upper()) for key in ("fr", "de", "be")}
        results = run_pool(tasks, workers=3, attempts=2, delay=0)

        assert results == {"fr": "FR", "de": "DE", "be": "BE"}

    def test_failures_are_reported_at_the_join(self):
        good = Flaky(0)
        tasks = {"fr": good, "de": Flaky(10), "be": Flaky(10)}

        with pytest.raises(TaskPoolError) as exc:
            run_pool(tasks, workers=2, attempts=2, delay=0)

        assert set(exc.value.failures) == {"de", "be"}
        assert good.calls == 1

    def test_empty_task_set(self):
        assert run_pool({}, workers=4, attempts=1, delay=0) == {}
