"""
SQLite store shared with the read API. The scraper only appends; the API only
reads through property_location_view.
"""
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

log = logging.getLogger("inmoup")

SCHEMA = """
CREATE TABLE IF NOT EXISTS locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    street_address VARCHAR(255) NOT NULL,
    city VARCHAR(100) NOT NULL,
    state VARCHAR(50) NOT NULL,
    zip_code VARCHAR(20) NOT NULL,
    country VARCHAR(50) NOT NULL,
    latitude DECIMAL(10, 8),
    longitude DECIMAL(11, 8)
);

CREATE TABLE IF NOT EXISTS images (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    image_url VARCHAR(255) NOT NULL,
    is_primary BOOLEAN DEFAULT FALSE
);

CREATE TABLE IF NOT EXISTS properties (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title VARCHAR(255) NOT NULL,
    description TEXT,
    price DECIMAL(10, 2) NOT NULL,
    currency VARCHAR(3),
    square_meters INT NOT NULL,
    bedrooms INTEGER,
    bathrooms INTEGER,
    property_type TEXT NOT NULL,
    listing_type TEXT NOT NULL,
    location_id INTEGER NOT NULL,
    image_id INTEGER,
    FOREIGN KEY (location_id) REFERENCES locations(id),
    FOREIGN KEY (image_id) REFERENCES images(id)
);
CREATE INDEX IF NOT EXISTS idx_properties_location ON properties(location_id);

CREATE VIEW IF NOT EXISTS property_location_view AS
SELECT
    p.id AS property_id,
    p.title,
    p.description,
    p.price,
    p.currency,
    p.square_meters,
    -- column name the read API selects
    p.square_meters AS square_feet,
    p.bedrooms,
    p.bathrooms,
    p.property_type,
    p.listing_type,
    l.id AS location_id,
    l.street_address,
    l.city,
    l.state,
    l.zip_code,
    l.country,
    l.latitude,
    l.longitude
FROM properties p
JOIN locations l ON p.location_id = l.id;
"""


def connect(path: str | Path) -> sqlite3.Connection:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create tables, index and view if absent. Safe on every start; no migrations."""
    conn.executescript(SCHEMA)
    conn.commit()


def init_database(path: str | Path) -> sqlite3.Connection:
    conn = connect(path)
    try:
        ensure_schema(conn)
    except sqlite3.Error:
        conn.close()
        raise
    log.info("Database initialized | %s", path)
    return conn


def list_properties(
    conn: sqlite3.Connection,
    property_ids: Optional[Iterable[int]] = None,
) -> List[dict]:
    """Rows of property_location_view, optionally limited to some property ids."""
    sql = "SELECT * FROM property_location_view"
    args: list = []
    if property_ids is not None:
        ids = list(property_ids)
        if not ids:
            return []
        sql += " WHERE property_id IN (" + ", ".join("?" for _ in ids) + ")"
        args = ids
    sql += " ORDER BY property_id"
    cur = conn.execute(sql, args)
    return [dict(row) for row in cur.fetchall()]
