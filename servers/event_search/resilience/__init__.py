"""Resilience patterns for provider calls."""

from .circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState
from .health import HealthMonitor
from .rate_limiter import RateLimiter, RateLimitExceededError
from .retry import backoff_delay, retry_async

__all__ = [
    "retry_async",
    "backoff_delay",
    "CircuitBreaker",
    "CircuitState",
    "CircuitBreakerOpenError",
    "HealthMonitor",
    "RateLimiter",
    "RateLimitExceededError",
]
