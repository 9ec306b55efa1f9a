from contextlib import asynccontextmanager

import pytest

from backend.inmoup.database import init_database
from backend.inmoup.parsing import extract_listings_from_html
from backend.py_models.property import ListingType

SALE_URL = "https://inmoup.com.ar/casa-en-venta/mendoza"

CARD = """
<article class="item">
  <a itemprop="url" href="{href}">Ver propiedad</a>
  <div class="price">{price}</div>
  <span class="label-dormitorio">{bedrooms}</span>
  <span class="label-banio">{bathrooms}</span>
  <span class="label-sup-total">{area}</span>
  <p><span itemprop="streetAddress">
      {address}
  </span></p>
</article>
"""


def index_html(*cards: dict) -> str:
    return "<html><body><section id='results'>" + "".join(CARD.format(**c) for c in cards) + "</section></body></html>"


def card(**kw) -> dict:
    d = {
        "href": "/propiedad/casa-en-venta-en-godoy-cruz-123",
        "price": "U$S 120.000",
        "bedrooms": "3",
        "bathrooms": "2",
        "area": "150m2",
        "address": "Calle Falsa 123",
    }
    d.update(kw)
    return d


class FakeResponse:
    def __init__(self, status: int = 200):
        self.status = status
        self.ok = 200 <= status <= 299


class FakePage:
    """Stands in for a Playwright page: goto + evaluate over a fixed HTML body."""

    def __init__(self, html: str = "", rows=None, goto_error=None, evaluate_error=None, status: int = 200):
        self.html = html
        self.rows = rows
        self.goto_error = goto_error
        self.status = status
        self.wait_until = None
        self.evaluate_error = evaluate_error
        self.navigation_timeout = None
        self.visited = []
        self.evaluated = []
        self.closed = False

    def set_default_navigation_timeout(self, ms):
        self.navigation_timeout = ms

    async def goto(self, url, wait_until=None):
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)
        self.wait_until = wait_until
        return FakeResponse(self.status)

    async def evaluate(self, script, arg):
        self.evaluated.append((script, arg))
        if self.evaluate_error is not None:
            raise self.evaluate_error
        if self.rows is not None:
            return self.rows
        # same contract as the in-page function
        listing_type = ListingType(arg["listingType"])
        return [r.model_dump(mode="json") for r in extract_listings_from_html(self.html, listing_type, arg)]


class FakeBrowser:
    def __init__(self, page: FakePage):
        self.page = page
        self.opened = 0

    @asynccontextmanager
    async def factory(self):
        self.opened += 1
        try:
            yield self.page
        finally:
            self.page.closed = True


@pytest.fixture
def db(tmp_path):
    conn = init_database(tmp_path / "props.sqlite")
    yield conn
    conn.close()


@pytest.fixture
def count_rows(db):
    def _count(table: str) -> int:
        return db.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    return _count
