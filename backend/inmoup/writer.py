import logging
import sqlite3
from typing import Tuple

from backend.inmoup.errors import PersistenceError
from backend.py_models.property import NormalizedProperty

log = logging.getLogger("inmoup")

# not scraped from the index page
UNKNOWN = "Unknown"

INSERT_LOCATION = """
INSERT INTO locations (street_address, city, state, zip_code, country)
VALUES (?, ?, ?, ?, ?)
"""

INSERT_PROPERTY = """
INSERT INTO properties (
    title, description, price, currency, square_meters,
    bedrooms, bathrooms, property_type, listing_type, location_id
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def write_property(
    conn: sqlite3.Connection,
    prop: NormalizedProperty,
    country: str = "Argentina",
) -> Tuple[int, int]:
    """
    Insert the location row, then the property row pointing at it, as one
    transaction. Returns (property_id, location_id).

    A failing property insert rolls the location back: a property never exists
    without its location and no orphan locations are left behind.
    """
    try:
        with conn:
            cur = conn.execute(
                INSERT_LOCATION,
                (prop.address, UNKNOWN, UNKNOWN, UNKNOWN, country),
            )
            location_id = cur.lastrowid
            cur = conn.execute(
                INSERT_PROPERTY,
                (
                    prop.title,
                    "",
                    str(prop.price),
                    prop.currency,
                    prop.square_meters,
                    prop.bedrooms,
                    prop.bathrooms,
                    prop.property_type.value,
                    prop.listing_type.value,
                    location_id,
                ),
            )
            property_id = cur.lastrowid
    except (sqlite3.Error, OverflowError) as e:
        log.error("DB INSERT ✘ %s | %s", prop.address, e)
        raise PersistenceError(f"insert failed for {prop.address!r}: {e}") from e

    log.info(
        "DB INSERT ✔ #%s %s | %s %s | beds=%s baths=%s m2=%s | %s",
        property_id,
        prop.title,
        prop.currency or "",
        prop.price,
        prop.bedrooms,
        prop.bathrooms,
        prop.square_meters,
        prop.address,
    )
    return property_id, location_id
