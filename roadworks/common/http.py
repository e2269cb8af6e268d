"""HTTP client for the open-data and directions endpoints."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import requests
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from roadworks.common.constants import USER_AGENT
from roadworks.common.errors import FetchError, RetryableFetchError
from roadworks.common.logging import log_event

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}

# Requests per second. OpenRouteService's free tier allows 40/min.
SOURCE_RATE_LIMITS = {
    "dataset": 2.0,
    "directions": 0.6,
}

SECRET_PARAMS = ("api_key",)


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 60.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 4
    multiplier: float = 1.0
    max_wait: float = 20.0


class TokenBucket:
    def __init__(self, rate_per_sec: float) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = max(rate_per_sec, 1.0)
        self.tokens = self.capacity
        self.updated_at = time.monotonic()
        self.lock = threading.Lock()

    def acquire(self) -> None:
        while True:
            with self.lock:
                now = time.monotonic()
                self.tokens = min(self.capacity, self.tokens + (now - self.updated_at) * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return
                wait_for = max((1.0 - self.tokens) / self.rate_per_sec, 0.01)
            time.sleep(wait_for)


class SourceRateLimiter:
    """One bucket per (source type, host); unknown source types are not limited."""

    def __init__(self, rates: dict[str, float] | None = None) -> None:
        self.rates = dict(SOURCE_RATE_LIMITS if rates is None else rates)
        self.buckets: dict[tuple[str, str], TokenBucket] = {}
        self.lock = threading.Lock()

    def acquire(self, source_type: str, url: str) -> None:
        rate = self.rates.get(source_type)
        if rate is None:
            return
        key = (source_type, urlparse(url).netloc)
        with self.lock:
            bucket = self.buckets.get(key)
            if bucket is None:
                bucket = self.buckets[key] = TokenBucket(rate)
        bucket.acquire()


def redact(text: str, params: dict[str, Any] | None) -> str:
    """Blank out secret query values that requests echoes into its error messages."""
    for name in SECRET_PARAMS:
        value = (params or {}).get(name)
        if value:
            text = text.replace(str(value), "***")
    return text


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        rate_limiter: SourceRateLimiter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.rate_limiter = rate_limiter or SourceRateLimiter()
        self.logger = logger
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _log_retry(self, source_type: str, state: RetryCallState) -> None:
        if self.logger is None or state.outcome is None:
            return
        log_event(
            self.logger,
            f"retrying after: {state.outcome.exception()}",
            level=logging.WARNING,
            stage="fetch",
            source=source_type,
            event="HTTP_RETRY",
            status="retry",
            attempt=state.attempt_number,
        )

    def _fetch(
        self,
        url: str,
        source_type: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
        timeout: TimeoutConfig,
    ) -> Any:
        self.rate_limiter.acquire(source_type, url)
        try:
            response = self.session.get(
                url,
                params=params,
                headers=headers,
                timeout=(timeout.connect, timeout.read),
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RetryableFetchError(redact(f"{source_type} transport failure: {exc}", params)) from None
        except requests.RequestException as exc:
            raise FetchError(redact(f"{source_type} request failed: {exc}", params)) from None

        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableFetchError(f"{source_type}: retryable HTTP status {status}")
        if status >= 400:
            raise FetchError(f"{source_type}: HTTP status {status}")
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"{source_type}: invalid JSON payload") from exc

    def get_json(
        self,
        url: str,
        *,
        source_type: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        """GET ``url`` and decode JSON, retrying transport errors and retryable statuses."""

        @retry(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=1.0,
            ),
            retry=retry_if_exception_type(RetryableFetchError),
            before_sleep=lambda state: self._log_retry(source_type, state),
            reraise=True,
        )
        def _wrapped() -> Any:
            return self._fetch(url, source_type, params, headers, timeout or self.timeout)

        return _wrapped()
