"""
Populate the delay store with sample reports.

Run with: python -m transit_delays.seed_data [--count 50] [--keep]
"""
import argparse
import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .config import get_settings
from .main import build_store
from .models import DELAY_REASONS, DelayStatus, NewDelayReport
from .store import DelayStore

neighborhoods = [
    "Downtown",
    "Midtown",
    "Uptown",
    "Eastside",
    "Westside",
    "North End",
    "South Park",
    "Central District",
    "Riverside",
    "Harbor View"
]

routes = ["Route 1", "Route 2", "Route 3", "Route 4", "Route 5", "Route 42", "Route 101", "Route 202"]


def generate_sample_delays(
    count: int = 50,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None
) -> List[NewDelayReport]:
    """Random delay reports from the last 7 days, roughly 70% still active."""
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    delays = []
    for _ in range(count):
        delays.append(NewDelayReport(
            route_number=rng.choice(routes),
            neighborhood=rng.choice(neighborhoods),
            delay_minutes=rng.randint(5, 64),
            reason=rng.choice(DELAY_REASONS),
            bus_id=f"BUS-{rng.randint(0, 9998):04d}",
            reported_at=now - timedelta(seconds=rng.random() * 7 * 24 * 60 * 60),
            status=DelayStatus.ACTIVE if rng.random() > 0.3 else DelayStatus.RESOLVED
        ))

    return delays


async def seed(store: DelayStore, count: int = 50, clear: bool = True, rng: Optional[random.Random] = None) -> int:
    """Insert sample reports, optionally wiping the store first. Returns how many were inserted."""
    if clear:
        removed = await store.clear()
        print(f"Cleared {removed} existing delay reports")

    inserted = 0
    for delay in generate_sample_delays(count, rng=rng):
        await store.insert(delay)
        inserted += 1

    print(f"Successfully seeded {inserted} delay records")
    return inserted


async def print_summary(store: DelayStore):
    """Print active delays per neighborhood, busiest first."""
    groups = await store.group_by_neighborhood(DelayStatus.ACTIVE)
    groups = sorted(groups, key=lambda g: g.count, reverse=True)

    print("\nActive delays by neighborhood:")
    for group in groups:
        print(f"  {group.neighborhood}: {group.count} delays")


async def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Seed the delay store with sample data")
    parser.add_argument("--count", type=int, default=50, help="Number of reports to insert")
    parser.add_argument("--keep", action="store_true", help="Keep existing reports instead of clearing them")
    args = parser.parse_args(argv)

    store = build_store(get_settings())
    print(f"Seeding {store.name} delay store...")

    await seed(store, count=args.count, clear=not args.keep)
    await print_summary(store)


if __name__ == "__main__":
    asyncio.run(main())
