from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import httpx

from toolhub.core.config import settings

logger = logging.getLogger(__name__)


class CircuitState:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitConfig:
    failure_threshold: int = 3
    recovery_timeout_seconds: int = 60
    half_open_probe_attempts: int = 1


class CircuitBreaker:
    """Simple circuit breaker per key (e.g., gateway name)."""

    def __init__(self, config: CircuitConfig | None = None):
        self._config = config or CircuitConfig(
            failure_threshold=settings.CB_FAILURE_THRESHOLD,
            recovery_timeout_seconds=settings.CB_RECOVERY_TIMEOUT_SECONDS,
            half_open_probe_attempts=settings.CB_HALF_OPEN_PROBE_ATTEMPTS,
        )
        self._state: dict[str, str] = {}
        self._failure_count: dict[str, int] = {}
        self._opened_at: dict[str, float] = {}
        self._half_open_inflight: dict[str, int] = {}
        self._lock = asyncio.Lock()

    def state(self, key: str) -> str:
        return self._state.get(key, CircuitState.CLOSED)

    async def allow_request(self, key: str) -> bool:
        async with self._lock:
            state = self.state(key)

            if state == CircuitState.CLOSED:
                return True

            if state == CircuitState.OPEN:
                opened_at = self._opened_at.get(key, 0)
                if time.time() - opened_at < self._config.recovery_timeout_seconds:
                    return False
                self._state[key] = CircuitState.HALF_OPEN
                self._half_open_inflight[key] = 0

            # Half-open: only a limited number of probes
            inflight = self._half_open_inflight.get(key, 0)
            if inflight < self._config.half_open_probe_attempts:
                self._half_open_inflight[key] = inflight + 1
                return True
            return False

    async def on_success(self, key: str) -> None:
        async with self._lock:
            prev_state = self.state(key)
            self._failure_count[key] = 0
            self._state[key] = CircuitState.CLOSED
            self._opened_at.pop(key, None)
            self._half_open_inflight.pop(key, None)
            if prev_state != CircuitState.CLOSED:
                logger.info(
                    "Circuit closed", extra={"cb_key": key, "prev_state": prev_state}
                )

    async def on_failure(self, key: str) -> None:
        async with self._lock:
            count = self._failure_count.get(key, 0) + 1
            self._failure_count[key] = count

            state = self.state(key)
            if state == CircuitState.HALF_OPEN:
                self._trip_open(key)
            elif count >= self._config.failure_threshold and state != CircuitState.OPEN:
                self._trip_open(key)

    def _trip_open(self, key: str) -> None:
        self._state[key] = CircuitState.OPEN
        self._opened_at[key] = time.time()
        logger.warning(
            "Circuit opened",
            extra={
                "cb_key": key,
                "failure_threshold": self._config.failure_threshold,
                "recovery_timeout_seconds": self._config.recovery_timeout_seconds,
            },
        )


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    initial_backoff_seconds: float = 0.2
    backoff_multiplier: float = 2.0
    jitter_ratio: float = 0.2
    # Creating a gateway order twice charges twice; only safe methods retry
    retry_methods: tuple[str, ...] = ("GET", "HEAD")
    retry_on_statuses: tuple[int, ...] = (408, 425, 429, 500, 502, 503, 504)
    retry_on_exceptions: tuple[type[BaseException], ...] = (
        httpx.ReadTimeout,
        httpx.ConnectTimeout,
        httpx.RemoteProtocolError,
        httpx.NetworkError,
    )

    def attempts_for(self, method: str) -> int:
        return self.max_attempts if method.upper() in self.retry_methods else 1

    def compute_backoff(self, attempt: int) -> float:
        base = self.initial_backoff_seconds * (self.backoff_multiplier ** (attempt - 1))
        jitter = base * self.jitter_ratio * (2 * random.random() - 1)  # nosec B311
        return max(0.0, base + jitter)


class ResilientHttpClient:
    """
    httpx.AsyncClient wrapper with timeout, retry of safe methods,
    circuit breaker and concurrency limiting.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        max_concurrent: int | None = None,
        auth: tuple[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout_seconds or float(settings.EXTERNAL_API_TIMEOUT)
        self._retry = retry_policy or RetryPolicy(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            initial_backoff_seconds=settings.RETRY_INITIAL_BACKOFF_SECONDS,
            backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
            jitter_ratio=settings.RETRY_JITTER_RATIO,
        )
        self._circuit = circuit_breaker or CircuitBreaker()
        self._semaphore = asyncio.Semaphore(
            max_concurrent or settings.MAX_CONCURRENT_REQUESTS
        )

        client_kwargs: dict[str, Any] = {"timeout": self._timeout}
        if auth is not None:
            client_kwargs["auth"] = auth
        if transport is not None:
            client_kwargs["transport"] = transport

        self._client_kwargs = client_kwargs
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        # Reopened on demand after aclose()
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(**self._client_kwargs)
        return self._client

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        allowed_statuses: Iterable[int] | None = None,
        circuit_key: str | None = None,
    ) -> httpx.Response:
        key = circuit_key or urlparse(url).netloc or url

        if not await self._circuit.allow_request(key):
            logger.warning(
                "Circuit open - short-circuiting request",
                extra={"cb_key": key, "method": method},
            )
            raise httpx.RequestError(f"Circuit open for {key}")

        allowed = set(allowed_statuses or [])
        max_attempts = self._retry.attempts_for(method)
        attempt = 0

        async with self._semaphore:
            while True:
                attempt += 1
                try:
                    start = time.perf_counter()
                    response = await self.client.request(
                        method, url, headers=headers, params=params, json=json
                    )
                    latency_ms = int((time.perf_counter() - start) * 1000)
                except self._retry.retry_on_exceptions as exc:  # type: ignore[misc]
                    await self._circuit.on_failure(key)
                    if attempt < max_attempts:
                        await self._backoff(attempt, method, key, type(exc).__name__)
                        continue
                    logger.error(
                        "HTTP request error - giving up",
                        extra={"cb_key": key, "method": method, "exception": type(exc).__name__},
                    )
                    raise
                except httpx.HTTPError as exc:
                    await self._circuit.on_failure(key)
                    logger.error(
                        "HTTP request error - non-retryable exception",
                        extra={"cb_key": key, "method": method, "exception": type(exc).__name__},
                    )
                    raise

                if response.status_code < 400 or response.status_code in allowed:
                    await self._circuit.on_success(key)
                    logger.info(
                        "HTTP request success",
                        extra={
                            "cb_key": key,
                            "method": method,
                            "status": response.status_code,
                            "latency_ms": latency_ms,
                        },
                    )
                    return response

                if (
                    response.status_code in self._retry.retry_on_statuses
                    and attempt < max_attempts
                ):
                    await self._backoff(attempt, method, key, str(response.status_code))
                    continue

                await self._circuit.on_failure(key)
                logger.error(
                    "HTTP request failed",
                    extra={"cb_key": key, "method": method, "status": response.status_code},
                )
                response.raise_for_status()
                return response

    async def _backoff(self, attempt: int, method: str, key: str, reason: str) -> None:
        backoff = self._retry.compute_backoff(attempt)
        logger.warning(
            "HTTP retry",
            extra={
                "cb_key": key,
                "method": method,
                "attempt": attempt,
                "reason": reason,
                "backoff_seconds": round(backoff, 3),
            },
        )
        await asyncio.sleep(backoff)
