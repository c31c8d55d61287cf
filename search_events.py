"""
Run one event search from the command line and print the JSON payload.

Examples:
    python search_events.py --lat 40.7128 --lng -74.0060 --radius 10 --categories party
    python search_events.py --location "Austin, TX" --keyword jazz --limit 20

Provider keys are read from TICKETMASTER_KEY, PREDICTHQ_API_KEY and
RAPIDAPI_KEY; providers without a key are skipped.
"""

import argparse
import asyncio
import json
import sys

from servers.event_search.config.settings import load_config, validate_config
from servers.event_search.models import SearchValidationError
from servers.event_search.pipeline import EventSearchPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Search events across Ticketmaster, PredictHQ and RapidAPI')
    parser.add_argument('--location', help='Free-text location, e.g. "Austin, TX"')
    parser.add_argument('--lat', type=float, dest='latitude', help='Search center latitude')
    parser.add_argument('--lng', type=float, dest='longitude', help='Search center longitude')
    parser.add_argument('--radius', type=float, help='Radius in miles')
    parser.add_argument('--categories', help='Comma-separated categories (music,sports,arts,family,food,party)')
    parser.add_argument('--keyword', help='Keyword filter')
    parser.add_argument('--start-date', help='YYYY-MM-DD')
    parser.add_argument('--end-date', help='YYYY-MM-DD')
    parser.add_argument('--page', type=int, default=1)
    parser.add_argument('--limit', type=int)
    parser.add_argument('--jitter', action=argparse.BooleanOptionalAction, default=None,
                        dest='jitter_missing_coordinates',
                        help='Place events without coordinates near the center')
    parser.add_argument('--summary', action='store_true', help='Print a short summary instead of JSON')
    return parser


async def run(args: argparse.Namespace) -> int:
    config = load_config()
    errors = validate_config(config)
    if errors:
        for error in errors:
            print(f'Config error: {error}', file=sys.stderr)
        return 2

    params = {k: v for k, v in vars(args).items() if k != 'summary' and v is not None}
    pipeline = EventSearchPipeline(config=config)

    try:
        result = await pipeline.search(params)
    except SearchValidationError as e:
        for error in e.errors:
            print(f'Invalid parameter: {error}', file=sys.stderr)
        return 2

    if not args.summary:
        print(json.dumps(result.to_payload(), indent=2))
        return 0

    print(f'Found {result.meta.total_events} events, showing {result.meta.returned}')
    for name, stats in result.source_stats.items():
        suffix = f' - {stats.error}' if stats.error else ''
        print(f'  {name}: {stats.count} events ({stats.status}){suffix}')
    print('=' * 50)
    for event in result.events:
        tag = f' [{event.party_subcategory.value}]' if event.party_subcategory else ''
        print(f'{event.date} {event.time}  {event.title}{tag}')
        print(f'    {event.location}')
    return 0


def main():
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == '__main__':
    main()
