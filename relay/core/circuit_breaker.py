"""
Circuit breaker for collaborator calls.

One breaker per collaborator; after repeated failures the relay answers 503
immediately instead of waiting on a service that is down.
"""
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional
from relay.config import Settings

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Calls fail immediately
    HALF_OPEN = "half_open"  # Probing for recovery


class CircuitBreakerOpenException(Exception):
    """Exception raised when circuit breaker is open."""

    def __init__(self, message: str = "Circuit breaker is open"):
        self.message = message
        super().__init__(self.message)


class CircuitBreaker:
    """
    CLOSED: calls pass through; failure_threshold consecutive failures open the circuit.
    OPEN: calls raise CircuitBreakerOpenException until recovery_timeout has elapsed.
    HALF_OPEN: up to half_open_max_calls probes; all succeeding closes the circuit,
    any failure reopens it.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 30,
        half_open_max_calls: int = 3,
        excluded_exceptions: tuple = ()
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_max_calls = half_open_max_calls
        self.excluded_exceptions = excluded_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[float] = None
        self._half_open_calls = 0

    @classmethod
    def from_settings(cls, name: str, settings: Settings, excluded_exceptions: tuple = ()) -> "CircuitBreaker":
        return cls(
            name=name,
            failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
            half_open_max_calls=settings.CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
            excluded_exceptions=excluded_exceptions,
        )

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def _should_attempt_reset(self) -> bool:
        if self._last_failure_time is None:
            return True
        return (time.monotonic() - self._last_failure_time) >= self.recovery_timeout

    def _on_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.half_open_max_calls:
                self._transition(CircuitState.CLOSED)
                logger.info(f"Circuit breaker '{self.name}' closed after successful recovery")
        else:
            self._failure_count = 0

    def _on_failure(self, exception: Exception) -> None:
        if isinstance(exception, self.excluded_exceptions):
            return

        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN)
            logger.warning(f"Circuit breaker '{self.name}' reopened after failure in half-open state")
        elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._transition(CircuitState.OPEN)
            logger.warning(f"Circuit breaker '{self.name}' opened after {self._failure_count} failures")

    def _transition(self, state: CircuitState) -> None:
        self._state = state
        self._success_count = 0
        self._half_open_calls = 0
        if state == CircuitState.CLOSED:
            self._failure_count = 0

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Await func(*args, **kwargs) through the breaker.

        Raises:
            CircuitBreakerOpenException: If circuit is open
            Exception: Whatever func raises
        """
        if self._state == CircuitState.OPEN:
            if not self._should_attempt_reset():
                raise CircuitBreakerOpenException(
                    f"Circuit breaker '{self.name}' is open. Retry after {self.recovery_timeout}s"
                )
            self._transition(CircuitState.HALF_OPEN)
            logger.info(f"Circuit breaker '{self.name}' entering half-open state")

        if self._state == CircuitState.HALF_OPEN:
            if self._half_open_calls >= self.half_open_max_calls:
                raise CircuitBreakerOpenException(
                    f"Circuit breaker '{self.name}' half-open call limit reached"
                )
            self._half_open_calls += 1

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        """Manually reset the circuit breaker to closed state."""
        self._transition(CircuitState.CLOSED)
        self._last_failure_time = None
        logger.info(f"Circuit breaker '{self.name}' manually reset")

    def get_status(self) -> dict:
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout,
        }


class CircuitBreakerRegistry:
    """One breaker per collaborator name, shared by every client instance of an app."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker:
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker.from_settings(name, self._settings)
        return self._breakers[name]

    def status(self) -> list:
        return [breaker.get_status() for breaker in self._breakers.values()]
