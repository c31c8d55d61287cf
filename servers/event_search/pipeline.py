"""
Event search pipeline.

Orchestrates one search end to end:
1. Validate parameters (the only failure that reaches the caller)
2. Fan out to every configured provider concurrently
3. Drop excluded ids and apply the radius filter per source
4. Merge, then rank party searches or sort by start time
5. Trim to the requested page size

A failing provider never aborts a search; it shows up in source_stats.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
import structlog

from .adapters import ADAPTER_CLASSES, ProviderAdapter, SourceFetchError, TransientSourceError
from .config.settings import load_config
from .dedup import merge
from .geo import GeoPoint, filter_by_radius
from .models import Event, FetchStats, SearchMeta, SearchParams, SearchResult
from .resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    HealthMonitor,
    RateLimiter,
    RateLimitExceededError,
    retry_async,
)
from .scoring import score_and_sort, sort_by_start

logger = structlog.get_logger()

ClientFactory = Callable[[], httpx.AsyncClient]


def build_adapters(config: dict[str, Any], **adapter_kwargs: Any) -> list[ProviderAdapter]:
    """Instantiate the enabled provider adapters from config."""
    adapters = []
    for name, adapter_class in ADAPTER_CLASSES.items():
        settings = config["providers"].get(name, {})
        if not settings.get("enabled", True):
            continue
        adapters.append(
            adapter_class(
                api_key=settings.get("api_key"),
                timeout=settings.get("timeout"),
                base_url=settings.get("base_url"),
                **adapter_kwargs,
            )
        )
    return adapters


class EventSearchPipeline:
    """Search all providers and return one merged, ordered result page."""

    def __init__(
        self,
        adapters: Optional[list[ProviderAdapter]] = None,
        config: Optional[dict[str, Any]] = None,
        rate_limiter: Optional[RateLimiter] = None,
        health: Optional[HealthMonitor] = None,
        breakers: Optional[dict[str, CircuitBreaker]] = None,
        client_factory: Optional[ClientFactory] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        """Initialize pipeline.

        Args:
            adapters: Provider adapters; built from config when omitted
            config: Effective config (see config.settings.load_config)
            rate_limiter: Outbound request limiter, keyed by provider name
            health: Records every fetch outcome
            breakers: Circuit breaker per provider name
            client_factory: Creates the shared httpx.AsyncClient per search
            rng: Random source for coordinate jitter
            sleep: Awaitable used between retries
        """
        self.config = config or load_config()
        self.adapters = adapters if adapters is not None else build_adapters(self.config)

        limits = self.config["rate_limit"]
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=limits["max_requests"],
            window_seconds=limits["window_seconds"],
        )
        self.health = health or HealthMonitor()

        resilience = self.config["resilience"]
        self.breakers = breakers if breakers is not None else {}
        for adapter in self.adapters:
            self.breakers.setdefault(
                adapter.name,
                CircuitBreaker(
                    failure_threshold=resilience["failure_threshold"],
                    recovery_timeout=resilience["recovery_timeout"],
                    name=adapter.name,
                ),
            )

        self.client_factory = client_factory or httpx.AsyncClient
        self.rng = rng or random.Random()
        self.sleep = sleep

    def parse_params(self, raw: SearchParams | dict[str, Any] | None) -> SearchParams:
        """Validate raw parameters, filling config defaults."""
        if isinstance(raw, SearchParams):
            return raw
        search = self.config["search"]
        defaults = {
            "radius": search["default_radius_miles"],
            "limit": min(search["default_limit"], search["max_limit"]),
        }
        return SearchParams.parse({**defaults, **{k: v for k, v in (raw or {}).items() if v is not None}})

    def jitter_enabled(self, params: SearchParams) -> bool:
        if params.jitter_missing_coordinates is not None:
            return params.jitter_missing_coordinates
        return params.is_party_search and bool(self.config["search"].get("party_jitter", False))

    async def _fetch_source(
        self,
        adapter: ProviderAdapter,
        params: SearchParams,
        client: httpx.AsyncClient,
    ) -> tuple[list[Event], FetchStats]:
        """Fetch and normalize one provider; every failure becomes stats."""
        if not adapter.is_configured:
            return [], adapter.skipped_stats()

        start_time = datetime.now()
        breaker = self.breakers[adapter.name]
        resilience = self.config["resilience"]

        def failed(message: str) -> tuple[list[Event], FetchStats]:
            logger.warning("source_fetch_failed", source=adapter.name, error=message)
            return [], FetchStats(
                source=adapter.name,
                count=0,
                status="error",
                duration_ms=int((datetime.now() - start_time).total_seconds() * 1000),
                error=message,
            )

        try:
            breaker.before_call()
            self.rate_limiter.acquire(adapter.name)
            records = await retry_async(
                adapter.fetch,
                params,
                client,
                max_attempts=resilience["retry_attempts"],
                base_delay=resilience["retry_base_delay"],
                retryable_exceptions=(TransientSourceError,),
                sleep=self.sleep,
                name=f"{adapter.name}.fetch",
            )
        except (CircuitBreakerOpenError, RateLimitExceededError) as e:
            return failed(str(e))
        except SourceFetchError as e:
            breaker.record_failure(e)
            return failed(str(e))
        except Exception as e:
            logger.exception("source_fetch_crashed", source=adapter.name)
            breaker.record_failure(e)
            return failed(f"Unexpected error: {e}")

        breaker.record_success()
        events = adapter.normalize_all(records)
        return events, FetchStats(
            source=adapter.name,
            count=len(events),
            status="success",
            duration_ms=int((datetime.now() - start_time).total_seconds() * 1000),
        )

    async def fetch_all(
        self,
        params: SearchParams,
    ) -> tuple[dict[str, list[Event]], dict[str, FetchStats]]:
        """Query every adapter concurrently."""
        async with self.client_factory() as client:
            results = await asyncio.gather(
                *(self._fetch_source(adapter, params, client) for adapter in self.adapters)
            )

        events: dict[str, list[Event]] = {}
        stats: dict[str, FetchStats] = {}
        for adapter, (source_events, source_stats) in zip(self.adapters, results):
            events[adapter.name] = source_events
            stats[adapter.name] = source_stats
            self.health.record(source_stats)
        return events, stats

    async def search(self, raw_params: SearchParams | dict[str, Any] | None) -> SearchResult:
        """
        Run a full search.

        Raises:
            SearchValidationError: If the parameters are invalid
        """
        params = self.parse_params(raw_params)
        started = datetime.now()

        logger.info(
            "search_started",
            location=params.location,
            has_coordinates=params.has_coordinates,
            radius=params.radius,
            categories=params.categories,
            party=params.is_party_search,
            page=params.page,
        )

        per_source, stats = await self.fetch_all(params)

        excluded = set(params.exclude_ids)
        jitter = self.jitter_enabled(params)
        jittered = 0
        for name, events in per_source.items():
            if excluded:
                events = [e for e in events if e.id not in excluded]
            if params.has_coordinates:
                center = GeoPoint(params.latitude, params.longitude)
                filtered = filter_by_radius(events, center, params.radius, jitter, self.rng)
                events = filtered.events
                jittered += filtered.jittered
            per_source[name] = events

        merged = merge(per_source, stats)

        if params.is_party_search:
            ordered = score_and_sort(merged.events)
        else:
            ordered = merged.events
            if params.categories:
                ordered = [e for e in ordered if e.category in params.categories]
            ordered = sort_by_start(ordered)

        # Providers already paged upstream; keep the first `limit` merged events
        page = ordered[:params.limit]

        meta = SearchMeta(
            total_events=len(ordered),
            events_with_coordinates=sum(1 for e in page if e.coordinates),
            returned=len(page),
            page=params.page,
            limit=params.limit,
            has_more=len(page) >= params.limit,
            jittered=jittered,
            cross_source_matches=len(merged.cross_source_matches),
            execution_time_ms=int((datetime.now() - started).total_seconds() * 1000),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        logger.info(
            "search_finished",
            total_events=meta.total_events,
            returned=meta.returned,
            has_more=meta.has_more,
            failed_sources=[n for n, s in merged.source_stats.items() if s.status == "error"],
            execution_time_ms=meta.execution_time_ms,
        )

        return SearchResult(events=page, source_stats=merged.source_stats, meta=meta)
