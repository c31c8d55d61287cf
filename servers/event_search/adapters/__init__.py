"""Provider adapters: one per upstream event API."""

from .base import ProviderAdapter, SourceFetchError, TransientSourceError
from .predicthq import PredictHQAdapter
from .rapidapi import RapidAPIAdapter
from .ticketmaster import TicketmasterAdapter

# Merge precedence follows this order
ADAPTER_CLASSES = {
    "ticketmaster": TicketmasterAdapter,
    "predicthq": PredictHQAdapter,
    "rapidapi": RapidAPIAdapter,
}

__all__ = [
    "ADAPTER_CLASSES",
    "ProviderAdapter",
    "SourceFetchError",
    "TransientSourceError",
    "TicketmasterAdapter",
    "PredictHQAdapter",
    "RapidAPIAdapter",
]
