import argparse
import asyncio
import pathlib
import sys
import time
from datetime import date

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from arttimeline.app.config import settings
from arttimeline.app.deps import close_clients, get_cache_store, get_met_client, get_timeline_service
from arttimeline.services.periods import list_periods


async def warm(period_ids: list[str], limit: int, day: date) -> None:
    client = get_met_client()
    timeline = get_timeline_service(client, get_cache_store())
    try:
        for period_id in period_ids:
            started = time.perf_counter()
            artworks = await timeline.artworks_for_period(period_id, limit, today=day)
            elapsed = time.perf_counter() - started
            print(f"\n=== {period_id} ({elapsed:.1f}s)")
            print("artworks:", len(artworks))
            for artwork in artworks:
                print(f"  {artwork.id:>8}  {artwork.year_label[:20]:<20}  {artwork.title[:60]}")
    finally:
        await close_clients()


def main(argv: list[str] | None = None) -> None:
    known = [period.id for period in list_periods()]
    parser = argparse.ArgumentParser(description="Curate periods ahead of time to warm the cache")
    parser.add_argument("period", nargs="*", default=known, help=f"Period ids (default: all of {known})")
    parser.add_argument("--limit", type=int, default=settings.CURATION_DEFAULT_LIMIT)
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=date.today(),
        help="Day to curate for, YYYY-MM-DD (default: today)",
    )
    args = parser.parse_args(argv)

    unknown = [period_id for period_id in args.period if period_id not in known]
    if unknown:
        parser.error(f"unknown period(s): {', '.join(unknown)}")
    if settings.CACHE_BACKEND != "supabase":
        parser.error("CACHE_BACKEND=supabase is required; the memory cache is lost when this script exits")

    print("cache backend:", settings.CACHE_BACKEND)
    asyncio.run(warm(args.period, args.limit, args.date))


if __name__ == "__main__":
    main()
