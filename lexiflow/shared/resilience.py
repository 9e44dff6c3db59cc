# lexiflow/shared/resilience.py
import logging
import time
import structlog
from enum import Enum
from typing import Callable, Any, Dict, Coroutine

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

logger = structlog.get_logger()

# --- 1. Custom Exceptions ---

class ResilienceError(Exception):
    """Base class for resilience-related errors."""
    pass


class CircuitBreakerOpenError(ResilienceError):
    """Raised when a call is blocked because the Circuit Breaker is OPEN."""
    def __init__(self, service_name: str, reset_timeout: float):
        self.service_name = service_name
        self.reset_timeout = reset_timeout
        super().__init__(f"Circuit Breaker for {service_name} is OPEN. Retrying in {reset_timeout}s.")

# --- 2. Circuit Breaker Implementation ---

class CircuitState(str, Enum):
    CLOSED = "closed"     # Normal operation
    OPEN = "open"         # Failing, blocking requests
    HALF_OPEN = "half_open" # Testing recovery


class CircuitBreaker:
    """
    Implements the Circuit Breaker pattern.

    Stops a resolution tier from hammering an external service (Wiktionary,
    GitHub, the inference API) that keeps failing; while OPEN every call
    fails fast and the caller treats it as a miss for that tier.
    """
    def __init__(self, name: str, failure_threshold: int = 5, recovery_timeout: float = 30):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time = 0.0

    async def a_call(self, func: Callable[..., Coroutine[Any, Any, Any]], *args, **kwargs) -> Any:
        """
        Executes an async function (Coroutine) if the circuit is CLOSED or HALF-OPEN.
        """
        self._check_state()

        try:
            result = await func(*args, **kwargs)
            self._handle_success()
            return result
        except Exception:
            self._handle_failure()
            raise

    def _check_state(self):
        """Internal logic to check if the circuit allows execution."""
        if self.state == CircuitState.OPEN:
            if time.time() - self.last_failure_time > self.recovery_timeout:
                self._transition_to(CircuitState.HALF_OPEN)
            else:
                raise CircuitBreakerOpenError(self.name, self.recovery_timeout)

    def _handle_success(self):
        if self.state == CircuitState.HALF_OPEN:
            self._reset()
        else:
            self.failure_count = 0

    def _handle_failure(self):
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.OPEN)
        elif self.failure_count >= self.failure_threshold:
            self._transition_to(CircuitState.OPEN)

    def _transition_to(self, new_state: CircuitState):
        self.state = new_state
        logger.warning("circuit_breaker_state_change",
                       service=self.name,
                       state=new_state.value,
                       failures=self.failure_count)

    def _reset(self):
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        logger.info("circuit_breaker_recovered", service=self.name)


# Registry to hold singleton instances of breakers
_breakers: Dict[str, CircuitBreaker] = {}


def get_circuit_breaker(service_name: str, recovery_timeout: float = 30) -> CircuitBreaker:
    if service_name not in _breakers:
        _breakers[service_name] = CircuitBreaker(
            name=service_name,
            failure_threshold=5,
            recovery_timeout=recovery_timeout,
        )
    return _breakers[service_name]


def reset_circuit_breakers() -> None:
    """Drops every registered breaker (used between tests)."""
    _breakers.clear()

# --- 3. Retry Policies (Tenacity) ---

def retry_external_api(func):
    """
    Decorator for retries on idempotent external reads (Wiktionary, GitHub GETs).
    Strategy:
    - Wait: Exponential Backoff (0.5s, 1s, 2s) capped at 4s.
    - Stop: After 3 attempts.
    - Only transport errors are retried; HTTP status errors are answers.
    """
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((httpx.TransportError, TimeoutError, ConnectionError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )(func)
