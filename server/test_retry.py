"""Tests for the retrying fetcher: classification, backoff and termination."""

import asyncio
import logging

import httpx
import pytest

from provenance.retry import (
    Absent,
    Exhausted,
    Rejected,
    RetryPolicy,
    StatusClass,
    Success,
    backoff_delay,
    classify_status,
    with_retry,
)


class ScriptedOperation:
    """Returns (or raises) the scripted items in order, repeating the last one."""

    def __init__(self, *items):
        self.items = list(items)
        self.calls = 0

    async def __call__(self) -> httpx.Response:
        self.calls += 1
        item = self.items.pop(0) if len(self.items) > 1 else self.items[0]
        if isinstance(item, Exception):
            raise item
        return item


def run(operation, policy, sleep):
    return asyncio.run(with_retry(operation, policy, label="test", sleep=sleep))


@pytest.mark.parametrize("status, expected", [
    (200, StatusClass.SUCCESS),
    (204, StatusClass.SUCCESS),
    (404, StatusClass.ABSENT),
    (429, StatusClass.RETRYABLE),
    (500, StatusClass.RETRYABLE),
    (503, StatusClass.RETRYABLE),
    (400, StatusClass.TERMINAL),
    (401, StatusClass.TERMINAL),
    (403, StatusClass.TERMINAL),
    (422, StatusClass.TERMINAL),
])
def test_classify_status(status, expected):
    assert classify_status(status) is expected


def test_success_on_first_attempt(recording_sleep):
    operation = ScriptedOperation(httpx.Response(200, text="ok"))

    outcome = run(operation, RetryPolicy(max_retries=3, initial_delay=1.0), recording_sleep)

    assert isinstance(outcome, Success)
    assert outcome.attempts == 1
    assert outcome.response.text == "ok"
    assert operation.calls == 1
    assert recording_sleep.delays == []


def test_404_is_absent_without_retry(recording_sleep):
    operation = ScriptedOperation(httpx.Response(404))

    outcome = run(operation, RetryPolicy(max_retries=3, initial_delay=1.0), recording_sleep)

    assert isinstance(outcome, Absent)
    assert operation.calls == 1
    assert recording_sleep.delays == []


def test_always_503_makes_four_attempts_then_exhausts(recording_sleep):
    operation = ScriptedOperation(httpx.Response(503))

    outcome = run(operation, RetryPolicy(max_retries=3, initial_delay=1.0), recording_sleep)

    assert isinstance(outcome, Exhausted)
    assert outcome.attempts == 4
    assert outcome.last_status == 503
    assert operation.calls == 4
    assert len(recording_sleep.delays) == 3
    assert recording_sleep.delays == sorted(recording_sleep.delays)
    assert recording_sleep.delays[0] < recording_sleep.delays[1] < recording_sleep.delays[2]


def test_rate_limit_then_success(recording_sleep):
    operation = ScriptedOperation(httpx.Response(429), httpx.Response(429), httpx.Response(200, text="ok"))

    outcome = run(operation, RetryPolicy(max_retries=3, initial_delay=0.5), recording_sleep)

    assert isinstance(outcome, Success)
    assert outcome.attempts == 3
    assert len(recording_sleep.delays) == 2


def test_transport_error_is_retried(recording_sleep):
    operation = ScriptedOperation(httpx.ConnectError("connection refused"), httpx.Response(200))

    outcome = run(operation, RetryPolicy(max_retries=2, initial_delay=0.5), recording_sleep)

    assert isinstance(outcome, Success)
    assert operation.calls == 2


def test_timeout_exhaustion_carries_last_error(recording_sleep):
    operation = ScriptedOperation(httpx.ReadTimeout("timed out"))

    outcome = run(operation, RetryPolicy(max_retries=1, initial_delay=0.5), recording_sleep)

    assert isinstance(outcome, Exhausted)
    assert outcome.attempts == 2
    assert outcome.last_status is None
    assert "ReadTimeout" in outcome.last_error
    assert "after 2 attempts" in outcome.describe()


def test_other_4xx_is_terminal(recording_sleep):
    operation = ScriptedOperation(httpx.Response(401, text="Bad credentials"))

    outcome = run(operation, RetryPolicy(max_retries=3, initial_delay=1.0), recording_sleep)

    assert isinstance(outcome, Rejected)
    assert outcome.status == 401
    assert "Bad credentials" in outcome.body
    assert operation.calls == 1
    assert recording_sleep.delays == []


def test_zero_retries_makes_single_attempt(recording_sleep):
    operation = ScriptedOperation(httpx.Response(500))

    outcome = run(operation, RetryPolicy(max_retries=0, initial_delay=1.0), recording_sleep)

    assert isinstance(outcome, Exhausted)
    assert operation.calls == 1
    assert recording_sleep.delays == []


def test_backoff_doubles_without_jitter():
    policy = RetryPolicy(max_retries=3, initial_delay=1.0)

    delays = [backoff_delay(policy, n, rng=lambda: 0.0) for n in (1, 2, 3)]

    assert delays == [1.0, 2.0, 4.0]


def test_backoff_jitter_is_bounded_by_fraction():
    policy = RetryPolicy(max_retries=3, initial_delay=0.5)

    assert backoff_delay(policy, 2, rng=lambda: 0.5) == pytest.approx(1.0 + 0.05)
    assert backoff_delay(policy, 2, rng=lambda: 0.999) < 1.0 * 1.1


@pytest.mark.parametrize("kwargs", [
    {"max_retries": -1, "initial_delay": 1.0},
    {"max_retries": 1, "initial_delay": 0},
    {"max_retries": 1, "initial_delay": 1.0, "backoff_multiplier": 0.5},
    {"max_retries": 1, "initial_delay": 1.0, "jitter_fraction": 2.0},
])
def test_invalid_policy_is_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_success_after_retry_is_logged(recording_sleep, caplog):
    operation = ScriptedOperation(httpx.Response(503), httpx.Response(200, text="ok"))

    with caplog.at_level(logging.INFO, logger="provenance.retry"):
        outcome = run(operation, RetryPolicy(max_retries=2, initial_delay=0.5), recording_sleep)

    assert isinstance(outcome, Success)
    assert "test: succeeded on attempt 2/3" in caplog.text


def test_first_attempt_success_is_not_logged(recording_sleep, caplog):
    operation = ScriptedOperation(httpx.Response(200, text="ok"))

    with caplog.at_level(logging.INFO, logger="provenance.retry"):
        run(operation, RetryPolicy(max_retries=2, initial_delay=0.5), recording_sleep)

    assert "succeeded" not in caplog.text
