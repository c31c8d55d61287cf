"""
Provider adapter interface.

Each upstream provider (Ticketmaster, PredictHQ, RapidAPI) implements one
ProviderAdapter: it maps SearchParams to an outbound request, extracts the
raw records from the response and normalizes each record into an Event.
"""

import random
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import httpx
import structlog

from ..models import Event, EventSource, FetchStats, SearchParams
from .common import Clock, error_event

logger = structlog.get_logger()

RequestSpec = tuple[str, dict[str, Any], dict[str, str]]


class SourceFetchError(Exception):
    """Raised when a provider request fails."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class TransientSourceError(SourceFetchError):
    """A provider failure worth retrying (timeouts, transport errors, 5xx, 429)."""


class ProviderAdapter(ABC):
    """Base class for provider adapters."""

    source: EventSource = EventSource.UNKNOWN
    api_key_env: str = ""
    base_url: str = ""
    default_timeout: float = 10.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        base_url: Optional[str] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize adapter.

        Args:
            api_key: Provider credential; the adapter is skipped without one
            timeout: Per-request timeout in seconds
            base_url: Override for the provider endpoint
            clock: Returns "now"; used for unknown start times and error ids
            rng: Random source for error-recovery ids
        """
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else self.default_timeout
        if base_url:
            self.base_url = base_url
        self.clock: Clock = clock or datetime.now
        self.rng = rng or random.Random()

    @property
    def name(self) -> str:
        return self.source.value

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def normalize(self, raw: Any) -> Event:
        """Convert one raw provider record into an Event. Never raises."""
        try:
            return self._normalize(raw)
        except Exception as e:
            logger.warning(
                "normalize_failed",
                source=self.name,
                raw_id=raw.get("id") if isinstance(raw, dict) else None,
                error=str(e),
            )
            return error_event(self.source, raw, self.clock, self.rng)

    def normalize_all(self, records: list[Any]) -> list[Event]:
        return [self.normalize(raw) for raw in records]

    @abstractmethod
    def _normalize(self, raw: dict[str, Any]) -> Event:
        """Provider-specific field extraction; may raise on malformed input."""

    @abstractmethod
    def build_request(self, params: SearchParams) -> RequestSpec:
        """Map search parameters to (url, query params, headers)."""

    @abstractmethod
    def extract_records(self, data: Any) -> list[dict[str, Any]]:
        """Pull the list of raw event records out of a response body."""

    async def fetch(self, params: SearchParams, client: httpx.AsyncClient) -> list[dict[str, Any]]:
        """Issue one GET to the provider and return its raw records.

        Raises:
            TransientSourceError: On timeouts, transport errors, 429 and 5xx
            SourceFetchError: On other HTTP errors or an unreadable body
        """
        url, query, headers = self.build_request(params)

        try:
            response = await client.get(url, params=query, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = f"HTTP {status}: {e.response.reason_phrase}"
            if status == 429 or status >= 500:
                raise TransientSourceError(self.name, message) from e
            raise SourceFetchError(self.name, message) from e
        except httpx.TimeoutException as e:
            raise TransientSourceError(self.name, f"Timeout after {self.timeout}s") from e
        except httpx.TransportError as e:
            raise TransientSourceError(self.name, f"Transport error: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise SourceFetchError(self.name, "Invalid JSON response") from e

        records = self.extract_records(data)
        logger.debug("source_fetched", source=self.name, records=len(records))
        return records

    def skipped_stats(self) -> FetchStats:
        return FetchStats(
            source=self.name,
            count=0,
            status="skipped",
            error=f"{self.api_key_env} not configured",
        )

    async def search(
        self,
        params: SearchParams,
        client: Optional[httpx.AsyncClient] = None,
    ) -> tuple[list[Event], FetchStats]:
        """Fetch and normalize events from this provider.

        Failures are reported in the returned stats, never raised.

        Returns:
            Tuple of (events, fetch_stats)
        """
        if not self.is_configured:
            return [], self.skipped_stats()

        start_time = datetime.now()

        try:
            if client is None:
                async with httpx.AsyncClient(timeout=self.timeout) as owned:
                    records = await self.fetch(params, owned)
            else:
                records = await self.fetch(params, client)
        except SourceFetchError as e:
            return [], FetchStats(
                source=self.name,
                count=0,
                status="error",
                duration_ms=int((datetime.now() - start_time).total_seconds() * 1000),
                error=str(e),
            )

        events = self.normalize_all(records)

        return events, FetchStats(
            source=self.name,
            count=len(events),
            status="success",
            duration_ms=int((datetime.now() - start_time).total_seconds() * 1000),
        )
