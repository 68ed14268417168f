"""
Retrying Fetcher

Runs an HTTP call under a RetryPolicy and classifies what came back.
Every call site (README, manifest, commits, inference) goes through
with_retry() so backoff math and status classification live in one place.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)


# =============================================================================
# POLICY
# =============================================================================

@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters. Delays are in seconds."""
    max_retries: int
    initial_delay: float
    backoff_multiplier: float = 2.0
    jitter_fraction: float = 0.1

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay <= 0:
            raise ValueError(f"initial_delay must be > 0, got {self.initial_delay}")
        if self.backoff_multiplier < 1:
            raise ValueError(f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}")
        if not 0 <= self.jitter_fraction <= 1:
            raise ValueError(f"jitter_fraction must be within [0, 1], got {self.jitter_fraction}")

    def base_delay(self, retry: int) -> float:
        """Delay before retry number `retry` (1-based), without jitter."""
        return self.initial_delay * self.backoff_multiplier ** (retry - 1)


# Short budget for optional metadata, longer for the load-bearing inference call
METADATA_POLICY = RetryPolicy(max_retries=2, initial_delay=0.5)
INFERENCE_POLICY = RetryPolicy(max_retries=3, initial_delay=1.0)


def backoff_delay(policy: RetryPolicy, retry: int, rng: Callable[[], float] = random.random) -> float:
    """Base delay plus uniform jitter of up to jitter_fraction of it."""
    delay = policy.base_delay(retry)
    return delay + rng() * policy.jitter_fraction * delay


# =============================================================================
# OUTCOMES
# =============================================================================

class StatusClass(str, Enum):
    SUCCESS = "success"
    ABSENT = "absent"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def classify_status(status: int) -> StatusClass:
    if 200 <= status < 300:
        return StatusClass.SUCCESS
    if status == 404:
        return StatusClass.ABSENT
    if status == 429 or 500 <= status < 600:
        return StatusClass.RETRYABLE
    return StatusClass.TERMINAL


@dataclass(frozen=True)
class Success:
    response: httpx.Response
    attempts: int = 1


@dataclass(frozen=True)
class Absent:
    """The resource does not exist. Not an error."""
    status: int = 404


@dataclass(frozen=True)
class Exhausted:
    """Every attempt hit a retryable condition."""
    attempts: int
    last_status: int | None = None
    last_error: str | None = None

    def describe(self) -> str:
        if self.last_status is not None:
            return f"HTTP {self.last_status} after {self.attempts} attempts"
        return f"{self.last_error} after {self.attempts} attempts"


@dataclass(frozen=True)
class Rejected:
    """A terminal, non-retryable failure (4xx other than 404/429)."""
    status: int
    body: str = ""


FetchOutcome = Success | Absent | Exhausted | Rejected


# =============================================================================
# EXECUTION
# =============================================================================

async def with_retry(
    operation: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    *,
    label: str = "request",
    sleep: Callable[[float], Awaitable[None]] | None = None,
    rng: Callable[[], float] | None = None,
) -> FetchOutcome:
    """
    Attempt `operation` up to policy.max_retries + 1 times.

    `operation` must build a fresh request on every call. 404 returns Absent
    and non-retryable 4xx returns Rejected, both without retrying. 429, 5xx
    and transport errors are retried after a jittered exponential backoff;
    when the budget runs out the last status or error is returned as
    Exhausted.
    """
    sleep = sleep or asyncio.sleep
    rng = rng or random.random
    total_attempts = policy.max_retries + 1
    last_status = None
    last_error = None

    for attempt in range(1, total_attempts + 1):
        try:
            response = await operation()
        except httpx.RequestError as e:
            last_status = None
            last_error = f"{type(e).__name__}: {e}"
            logger.warning(f"{label}: network error on attempt {attempt}/{total_attempts}: {last_error}")
        else:
            status_class = classify_status(response.status_code)
            if status_class is StatusClass.SUCCESS:
                if attempt > 1:
                    logger.info(f"{label}: succeeded on attempt {attempt}/{total_attempts}")
                return Success(response=response, attempts=attempt)
            if status_class is StatusClass.ABSENT:
                logger.info(f"{label}: not found (HTTP 404)")
                return Absent(status=response.status_code)
            if status_class is StatusClass.TERMINAL:
                body = response.text[:500]
                logger.warning(f"{label}: HTTP {response.status_code}, not retrying: {body}")
                return Rejected(status=response.status_code, body=body)
            last_status = response.status_code
            last_error = None
            logger.warning(f"{label}: HTTP {response.status_code} on attempt {attempt}/{total_attempts}")

        if attempt < total_attempts:
            delay = backoff_delay(policy, attempt, rng)
            logger.info(f"{label}: retrying in {delay:.2f}s (attempt {attempt + 1}/{total_attempts})")
            await sleep(delay)

    outcome = Exhausted(attempts=total_attempts, last_status=last_status, last_error=last_error)
    logger.error(f"{label}: giving up, {outcome.describe()}")
    return outcome
