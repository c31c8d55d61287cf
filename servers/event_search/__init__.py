"""
Event Search Core

This package provides the server-side event search pipeline:
- Normalizing events from Ticketmaster, PredictHQ and RapidAPI into one shape
- Classifying party events and their sub-category
- Filtering events by distance from a map center
- Merging per-source results and ranking party events

Consumers (map UI, chat, itinerary) receive plain event payloads.
"""

__version__ = "1.0.0"
