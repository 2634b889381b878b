# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Resilience utilities (timeouts, retries, circuit breaker)."""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from giftdrop.shared.config import load_config
from giftdrop.shared.logging import logger

_config = load_config()
T = TypeVar("T")


class CircuitOpenError(RuntimeError):
    pass


@dataclass
class CircuitBreaker:
    """In-memory circuit breaker shared by the calls to one upstream."""

    failure_threshold: int
    reset_timeout: float
    name: str = "upstream"
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self._failures = 0
        self._opened_at: float | None = None

    @classmethod
    def from_config(cls, name: str) -> CircuitBreaker:
        return cls(
            failure_threshold=_config.resilience.circuit_fail_threshold,
            reset_timeout=_config.resilience.circuit_reset_timeout,
            name=name,
        )

    def allow(self) -> bool:
        with self._lock:
            if self._opened_at is None:
                return True
            if time.monotonic() - self._opened_at >= self.reset_timeout:
                logger.info(f"breaker[{self.name}]: half-open state")
                self._opened_at = None
                self._failures = 0
                return True
        logger.warning(f"breaker[{self.name}]: open state refusing call")
        return False

    def on_success(self) -> None:
        with self._lock:
            self._failures = 0
            self._opened_at = None

    def on_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._failures >= self.failure_threshold and self._opened_at is None:
                self._opened_at = time.monotonic()
                logger.error(f"breaker[{self.name}]: opening circuit after failures")


async def guarded_call(  # noqa: UP047
    func: Callable[..., Awaitable[T]],
    *args: Any,
    breaker: CircuitBreaker,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """Single attempt under a timeout and circuit breaker, no retries.

    For calls that are not safe to repeat, such as invoice creation.
    """

    if not breaker.allow():
        raise CircuitOpenError(f"circuit breaker {breaker.name} is open")
    try:
        result = await asyncio.wait_for(
            func(*args, **kwargs), timeout=timeout or _config.resilience.default_timeout
        )
    except Exception:
        breaker.on_failure()
        raise
    breaker.on_success()
    return result


async def resilient_call(  # noqa: UP047
    func: Callable[..., Awaitable[T]],
    *args: Any,
    breaker: CircuitBreaker | None = None,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """Execute call with retries, timeout, and optional circuit breaker."""

    breaker = breaker or CircuitBreaker.from_config(getattr(func, "__name__", "call"))

    if not breaker.allow():
        raise CircuitOpenError(f"circuit breaker {breaker.name} is open")

    timeout = timeout or _config.resilience.default_timeout

    retry = AsyncRetrying(
        stop=stop_after_attempt(_config.resilience.max_retries + 1),
        wait=wait_exponential(
            multiplier=_config.resilience.backoff_base,
            max=_config.resilience.backoff_cap,
        ),
        retry=retry_if_exception_type(Exception),
        reraise=True,
    )

    try:
        async for attempt in retry:
            with attempt:
                logger.debug(
                    f"resilience: attempt={attempt.retry_state.attempt_number} "
                    f"func={getattr(func, '__name__', func)}"
                )
                result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
                breaker.on_success()
                return result
    except RetryError as exc:
        breaker.on_failure()
        last_exc = exc.last_attempt.exception()
        if last_exc is None:
            raise RuntimeError("resilience: retry failed without exception") from exc
        raise last_exc from exc
    except Exception:
        breaker.on_failure()
        raise
    raise RuntimeError("resilience: reached unexpected branch")


__all__ = ["CircuitBreaker", "CircuitOpenError", "guarded_call", "resilient_call"]
