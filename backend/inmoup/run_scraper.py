import argparse
import asyncio
import csv
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from backend.inmoup.config import ScrapeConfig
from backend.inmoup.database import init_database, list_properties
from backend.inmoup.errors import ClassificationError, NavigationError
from backend.inmoup.filters import build_search_url
from backend.inmoup.scraper import scrape_listings
from backend.py_models.property import BatchSummary

log = logging.getLogger("inmoup")

EXPORT_FIELDS = [
    "property_id", "title", "price", "currency", "square_meters", "bedrooms",
    "bathrooms", "property_type", "listing_type", "address", "detail_url",
]


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="Scrape one inmoup listing index page into SQLite.")
    p.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Index page URL (optional). If omitted, the default Mendoza apartments-for-rent search is used",
    )
    p.add_argument("--db", default=None, help="SQLite file (default: INMOUP_DB_PATH or backend/data/property_database.sqlite)")
    p.add_argument("--http-only", action="store_true", help="Fetch with plain HTTP instead of a browser")
    p.add_argument("--headful", action="store_true", help="Run the browser in visible mode for debugging")
    p.add_argument("--timeout-ms", type=int, default=None, help="Navigation timeout in milliseconds")
    p.add_argument("--country", default=None, help="Country stored on every location row")
    p.add_argument(
        "--strict-property-type",
        action="store_true",
        help="Skip listings whose link has no house/apartment marker instead of assuming APARTMENT",
    )
    p.add_argument("--output", help="Optional path to save written records as .json or .csv")
    p.add_argument("--print-details", action="store_true", help="Print each written property row to stdout")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return p.parse_args(argv)


def build_config(args) -> ScrapeConfig:
    config = ScrapeConfig.from_env()
    overrides = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.http_only:
        overrides["fetch_mode"] = "http"
    if args.headful:
        overrides["headless"] = False
    if args.timeout_ms:
        overrides["navigation_timeout_ms"] = args.timeout_ms
    if args.country:
        overrides["country"] = args.country
    if args.strict_property_type:
        overrides["strict_property_type"] = True
    return replace(config, **overrides)


def export_rows(summary: BatchSummary, out_path: str) -> int:
    rows = []
    for r in summary.results:
        if not r.ok or r.record is None:
            continue
        d = r.record.model_dump(mode="json")
        d["property_id"] = r.property_id
        rows.append({k: d.get(k) for k in EXPORT_FIELDS})

    path = Path(out_path)
    if path.suffix.lower() == ".json":
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
    elif path.suffix.lower() == ".csv":
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=EXPORT_FIELDS)
            writer.writeheader()
            writer.writerows(rows)
    else:
        raise ValueError(f"Unknown output format for {out_path!r}. Use .json or .csv")
    return len(rows)


async def run(args) -> int:
    config = build_config(args)
    url = args.url or build_search_url()
    if args.output and Path(args.output).suffix.lower() not in {".json", ".csv"}:
        log.error("Unknown output format for %r. Use .json or .csv", args.output)
        return 2

    conn = init_database(config.db_path)
    try:
        try:
            summary = await scrape_listings(url, conn, config)
        except (ClassificationError, NavigationError) as e:
            log.error("SCRAPE ABORTED | %s: %s", type(e).__name__, e)
            return 2

        if args.print_details:
            ids = [r.property_id for r in summary.results if r.ok]
            for row in list_properties(conn, ids):
                print(
                    f"- #{row['property_id']} {row['title']} | {row['currency'] or ''} {row['price']} | "
                    f"{row['bedrooms']} dorm / {row['bathrooms']} baños | {row['square_meters']} m2 | "
                    f"{row['street_address']}"
                )

        if args.output:
            n = export_rows(summary, args.output)
            log.info("Saved %d properties to %s", n, args.output)
    finally:
        conn.close()

    return 1 if summary.skipped else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    if args.verbose:
        log.setLevel(logging.DEBUG)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
