"""Shared HTTP plumbing: rate-limit aware request client and the cached Open-Meteo client."""

import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Iterator

import openmeteo_requests
import requests
import requests_cache
from retry_requests import retry

from skycast.errors import (
    ClientError,
    MalformedResponse,
    RetryExhausted,
    ServerError,
    TimeoutExceeded,
    TransportError,
)

logger = logging.getLogger(__name__)

RATE_LIMITED = 429


@lru_cache(maxsize=1)
def openmeteo_client() -> openmeteo_requests.Client:
    """Open-Meteo client over a 1-hour cache with 5 retries and backoff (weather reads only)."""
    cache_session = requests_cache.CachedSession(".cache", expire_after=3600)
    retry_session = retry(cache_session, retries=5, backoff_factor=0.2)
    return openmeteo_requests.Client(session=retry_session)


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    json: Any = None


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff for rate-limited (HTTP 429) responses.

    Args:
        max_retries: Total attempts allowed for one logical request.
        initial_delay: Seconds to wait after the first 429.
        backoff_factor: Multiplier applied to the delay after every wait.
        total_timeout: Optional absolute deadline in seconds for the whole call.
    """

    max_retries: int = 5
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    total_timeout: float | None = None

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.initial_delay < 0 or self.backoff_factor < 1:
            raise ValueError("initial_delay must be >= 0 and backoff_factor >= 1")

    def delays(self) -> Iterator[float]:
        delay = self.initial_delay
        while True:
            yield delay
            delay *= self.backoff_factor


class RetryingHttpClient:
    """
    Issues one logical request, absorbing rate limits with backoff.

    Only 429 is retried. Transport failures and every other non-2xx status end
    the call on the spot. Calls share no state, so one client may serve many.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        policy: RetryPolicy | None = None,
        *,
        request_timeout: float = 10,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session = session or requests.Session()
        self.policy = policy or RetryPolicy()
        self.request_timeout = request_timeout
        self._sleep = sleep
        self._clock = clock

    def send(self, request: HttpRequest) -> tuple[Any, ClientError | None]:
        """
        Returns (parsed_json_body, None) on success; (None, ClientError) on failure.
        """
        policy = self.policy
        deadline = None
        if policy.total_timeout is not None:
            deadline = self._clock() + policy.total_timeout
        delays = policy.delays()

        for attempt in range(1, policy.max_retries + 1):
            timeout = self.request_timeout
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return None, self._timed_out(request, policy.total_timeout)
                timeout = min(timeout, remaining)

            try:
                response = self.session.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    json=request.json,
                    timeout=timeout,
                )
            except requests.RequestException as e:
                logger.error("%s %s failed: %s", request.method, request.url, e)
                return None, TransportError(str(e))

            if response.status_code == RATE_LIMITED:
                if attempt == policy.max_retries:
                    break
                delay = next(delays)
                if deadline is not None and self._clock() + delay > deadline:
                    return None, self._timed_out(request, policy.total_timeout)
                logger.warning(
                    "Rate limited (attempt %d/%d), retrying in %.1fs",
                    attempt,
                    policy.max_retries,
                    delay,
                )
                self._sleep(delay)
                continue

            if not 200 <= response.status_code < 300:
                logger.error(
                    "%s %s returned %s", request.method, request.url, response.status_code
                )
                return None, ServerError(response.status_code, response.text)

            try:
                return response.json(), None
            except ValueError as e:
                return None, MalformedResponse(f"Response body is not JSON: {e}")

        logger.error("Giving up after %d rate-limited attempts", policy.max_retries)
        return None, RetryExhausted(policy.max_retries)

    def _timed_out(self, request: HttpRequest, total_timeout: float) -> TimeoutExceeded:
        logger.error("%s %s exceeded %.1fs deadline", request.method, request.url, total_timeout)
        return TimeoutExceeded(f"No successful response within {total_timeout:.1f}s")
