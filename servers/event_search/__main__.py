"""
Tool server entry point for the event search core.

This server provides tools for:
- Searching events across Ticketmaster, PredictHQ and RapidAPI
- Normalizing raw provider records
- Classifying and scoring party events
- Reporting provider health

Run with: python -m servers.event_search [--test]
"""

import asyncio
import json
import sys
from typing import Any, Optional

from .adapters import ADAPTER_CLASSES
from .cache import CachedEventSearch, SearchCache
from .classifier import classify as classify_event
from .classifier import keyword_matches
from .config.settings import load_config, validate_config
from .models import Event
from .pipeline import EventSearchPipeline, build_adapters
from .scoring import score_and_sort, score_party_event


class EventSearchServer:
    """JSON-style tool interface over the search pipeline."""

    def __init__(self, config: Optional[dict[str, Any]] = None):
        self.config = config or load_config()
        errors = validate_config(self.config)
        if errors:
            raise ValueError("Invalid configuration: " + "; ".join(errors))

        self.adapters = {a.name: a for a in build_adapters(self.config)}
        self.pipeline = EventSearchPipeline(adapters=list(self.adapters.values()), config=self.config)

        cache_settings = self.config["cache"]
        self.search_service = self.pipeline
        if cache_settings["enabled"]:
            self.search_service = CachedEventSearch(
                self.pipeline,
                SearchCache(
                    default_ttl=cache_settings["ttl_seconds"],
                    max_entries=cache_settings["max_entries"],
                ),
            )

        self.tools = {
            "search_events": self.search_events,
            "normalize": self.normalize,
            "classify": self.classify,
            "score": self.score,
            "source_health": self.source_health,
        }

    async def search_events(self, **params: Any) -> dict:
        """
        Search all providers.

        Accepts SearchParams fields (location, latitude, longitude, radius,
        categories, keyword, start_date, end_date, page, limit, exclude_ids).
        """
        result = await self.search_service.search(params)
        return result.to_payload()

    async def normalize(self, source: str, records: list[dict]) -> dict:
        """Normalize raw records from one provider."""
        adapter = self.adapters.get(source)
        if adapter is None:
            if source not in ADAPTER_CLASSES:
                raise ValueError(f"Unknown source: {source}")
            adapter = ADAPTER_CLASSES[source]()
        return {"events": [adapter.normalize(r).to_payload() for r in records]}

    async def classify(
        self,
        title: str,
        description: str = "",
        venue: Optional[str] = None,
        time: str = "",
    ) -> dict:
        """Classify a title/description as party or not, with keyword evidence."""
        category, subcategory = classify_event(title, description, venue, time)
        return {
            "category": category,
            "partySubcategory": subcategory.value if subcategory else None,
            "keywords": keyword_matches(f"{title} {description}".lower()),
        }

    async def score(self, events: list[dict]) -> dict:
        """Rank party events; non-party events are dropped."""
        event_objects = [Event.model_validate(e) for e in events]
        ranked = score_and_sort(event_objects)
        return {
            "events": [e.to_payload() for e in ranked],
            "scores": {e.id: score_party_event(e) for e in ranked},
        }

    async def source_health(self) -> dict:
        """Provider health and circuit breaker state."""
        return {
            **self.pipeline.health.get_status(),
            "circuits": {name: b.get_status() for name, b in self.pipeline.breakers.items()},
            "rate_limits": self.pipeline.rate_limiter.get_status(),
        }


async def main():
    """Main entry point for the tool server."""
    server = EventSearchServer()

    print("Event Search Server")
    print("Available tools:", list(server.tools.keys()))

    if "--test" in sys.argv:
        print("\n--- Running test search ---")
        result = await server.search_events(
            latitude=40.7128,
            longitude=-74.0060,
            radius=10,
            categories=["party"],
            limit=20,
        )
        print(f"Found {result['meta']['returned']} events")
        for source, stat in result["sourceStats"].items():
            print(f"  {source}: {stat['count']} events ({stat['status']})")
        print(json.dumps(result["events"][:3], indent=2))


if __name__ == "__main__":
    asyncio.run(main())
