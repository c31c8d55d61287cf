"""Health monitoring for event providers."""

from datetime import datetime
from typing import Any, Callable, Optional

import structlog

from ..models import FetchStats

logger = structlog.get_logger()


class HealthMonitor:
    """Track the outcome of recent fetches per provider.

    Fed from each search's FetchStats; exposed through the source_health
    tool so callers can see which providers are degraded.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now
        self.status: dict[str, dict[str, Any]] = {}

    def record_success(self, source: str, event_count: int, duration_ms: Optional[int] = None) -> None:
        """Record a successful fetch from a source."""
        self.status[source] = {
            "healthy": True,
            "last_check": self.clock().isoformat(),
            "event_count": event_count,
            "duration_ms": duration_ms,
            "consecutive_failures": 0,
            "last_error": None,
        }
        logger.debug("source_healthy", source=source, event_count=event_count)

    def record_failure(self, source: str, error: str) -> None:
        """Record a failed fetch from a source."""
        consecutive = self.status.get(source, {}).get("consecutive_failures", 0) + 1

        self.status[source] = {
            "healthy": False,
            "last_check": self.clock().isoformat(),
            "event_count": 0,
            "duration_ms": None,
            "consecutive_failures": consecutive,
            "last_error": error,
        }
        logger.warning(
            "source_unhealthy",
            source=source,
            consecutive_failures=consecutive,
            error=error,
        )

    def record(self, stats: FetchStats) -> None:
        """Record a fetch outcome; skipped providers are not tracked."""
        if stats.status == "success":
            self.record_success(stats.source, stats.count, stats.duration_ms)
        elif stats.status == "error":
            self.record_failure(stats.source, stats.error or "unknown error")

    def get_status(self) -> dict[str, Any]:
        """Get full health status report."""
        healthy_count = sum(1 for s in self.status.values() if s.get("healthy", False))
        total_count = len(self.status)

        return {
            "timestamp": self.clock().isoformat(),
            "summary": {
                "healthy": healthy_count,
                "unhealthy": total_count - healthy_count,
                "total": total_count,
            },
            "sources": self.status,
            "unhealthy": self.get_unhealthy_sources(),
        }

    def get_unhealthy_sources(self) -> list[str]:
        return [
            name for name, status in self.status.items() if not status.get("healthy", True)
        ]
