import logging
import sqlite3
from functools import partial
from typing import Callable, Iterable, List, Optional

import httpx
from playwright.async_api import Error as PWError

from backend.inmoup.client import new_client, open_page
from backend.inmoup.config import ScrapeConfig
from backend.inmoup.errors import (
    ClassificationError,
    FieldParseError,
    NavigationError,
    PersistenceError,
)
from backend.inmoup.filters import classify_listing_type
from backend.inmoup.normalize import normalize_listing
from backend.inmoup.parsing import extract_listings, extract_listings_from_html
from backend.inmoup.writer import write_property
from backend.py_models.property import BatchSummary, ListingType, RawListing, RecordResult

log = logging.getLogger("inmoup")


def _process_record(
    index: int,
    raw: RawListing,
    conn: sqlite3.Connection,
    config: ScrapeConfig,
    target_url: Optional[str],
) -> RecordResult:
    try:
        prop = normalize_listing(
            raw,
            target_url=target_url,
            strict_property_type=config.strict_property_type,
            base_url=config.base_url,
        )
        property_id, location_id = write_property(conn, prop, country=config.country)
    except (FieldParseError, ClassificationError, PersistenceError) as e:
        # ClassificationError here means strict_property_type and an unmarked link
        log.warning("SKIP #%d | %s: %s | address=%r", index, type(e).__name__, e, raw.address)
        return RecordResult(index=index, ok=False, error=str(e), error_type=type(e).__name__)
    return RecordResult(
        index=index,
        ok=True,
        property_id=property_id,
        location_id=location_id,
        record=prop,
    )


def process_listings(
    raws: Iterable[RawListing],
    conn: sqlite3.Connection,
    config: ScrapeConfig,
    target_url: Optional[str] = None,
) -> List[RecordResult]:
    """Normalize and persist every record; one bad record never stops the rest."""
    return [_process_record(i, raw, conn, config, target_url) for i, raw in enumerate(raws)]


async def _load_with_browser(
    url: str,
    listing_type: ListingType,
    config: ScrapeConfig,
    page_factory: Callable,
) -> List[RawListing]:
    async with page_factory() as page:
        page.set_default_navigation_timeout(config.navigation_timeout_ms)
        try:
            response = await page.goto(url, wait_until="load")
        except PWError as nav_err:
            raise NavigationError(f"page.goto failed for {url}: {nav_err}") from nav_err
        # None for same-document navigations
        if response is not None and not response.ok:
            raise NavigationError(f"page.goto got HTTP {response.status} for {url}")
        return await extract_listings(page, listing_type, config.selectors)


async def _load_with_http(
    url: str,
    listing_type: ListingType,
    config: ScrapeConfig,
) -> List[RawListing]:
    try:
        async with new_client(timeout=config.navigation_timeout_ms / 1000) as client:
            r = await client.get(url)
            r.raise_for_status()
            html = r.text
    except httpx.HTTPError as http_err:
        raise NavigationError(f"HTTP fetch failed for {url}: {http_err}") from http_err
    return extract_listings_from_html(html, listing_type, config.selectors)


def log_summary(summary: BatchSummary) -> None:
    log.info(
        "SCRAPE DONE | %s | attempted=%d written=%d skipped=%d",
        summary.listing_type.value,
        summary.attempted,
        summary.written,
        summary.skipped,
    )
    for r in summary.failures:
        log.info("  skipped #%d | %s: %s", r.index, r.error_type, r.error)


async def scrape_listings(
    url: str,
    conn: sqlite3.Connection,
    config: Optional[ScrapeConfig] = None,
    page_factory: Optional[Callable] = None,
) -> BatchSummary:
    """
    Scrape one index page into the store and report what happened per record.

    ClassificationError (before any browser work) and NavigationError abort the
    run. Parse and storage errors only skip the affected record.
    `page_factory` returns an async context manager yielding a page; defaults
    to a headless chromium page.
    """
    config = config or ScrapeConfig()
    listing_type = classify_listing_type(url)
    log.info("SCRAPE ▶ %s | listing_type=%s mode=%s", url, listing_type.value, config.fetch_mode)

    if config.fetch_mode == "http":
        raws = await _load_with_http(url, listing_type, config)
    else:
        factory = page_factory or partial(open_page, headless=config.headless)
        raws = await _load_with_browser(url, listing_type, config, factory)
    log.info("extracted %d listing containers", len(raws))

    summary = BatchSummary(
        url=url,
        listing_type=listing_type,
        results=process_listings(raws, conn, config, target_url=url),
    )
    log_summary(summary)
    return summary
