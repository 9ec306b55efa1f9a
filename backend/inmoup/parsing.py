# backend/inmoup/parsing.py
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from backend.py_models.property import ListingType, RawListing

__all__ = ["SELECTORS", "EXTRACT_LISTINGS_JS", "extract_listings", "extract_listings_from_html"]

# inmoup index page skin
SELECTORS: Dict[str, str] = {
    "propertyContainer": "article.item",
    "price": ".price",
    "detailLink": "[itemprop='url']",
    "bedrooms": ".label-dormitorio",
    "bathrooms": ".label-banio",
    "squareMeters": ".label-sup-total",
    "address": "[itemprop='streetAddress']",
}

# logical field → selector key; detail_url is read from href
_TEXT_FIELDS = {
    "price": "price",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "square_meters": "squareMeters",
    "address": "address",
}

# Runs inside the page. Must only use its argument: it is serialized across
# the browser boundary, nothing from Python is visible there.
EXTRACT_LISTINGS_JS = """
(sel) => {
  const text = (root, s) => {
    const el = root.querySelector(s);
    return el && el.textContent ? el.textContent.trim() : "";
  };
  return Array.from(document.querySelectorAll(sel.propertyContainer)).map((el) => {
    const link = el.querySelector(sel.detailLink);
    return {
      price: text(el, sel.price),
      detail_url: link ? (link.getAttribute("href") || "") : "",
      bedrooms: text(el, sel.bedrooms),
      bathrooms: text(el, sel.bathrooms),
      square_meters: text(el, sel.squareMeters),
      address: text(el, sel.address),
      listing_type: sel.listingType,
    };
  });
}
"""


async def extract_listings(
    page,
    listing_type: ListingType,
    selectors: Optional[Dict[str, str]] = None,
) -> List[RawListing]:
    """Evaluate EXTRACT_LISTINGS_JS against the live page, one RawListing per container."""
    sel = dict(selectors or SELECTORS)
    sel["listingType"] = listing_type.value
    rows = await page.evaluate(EXTRACT_LISTINGS_JS, sel)
    return [RawListing.model_validate(r) for r in rows or []]


def _text(root: Tag, selector: str) -> str:
    el = root.select_one(selector)
    if el is None:
        return ""
    return el.get_text().strip()


def extract_listings_from_html(
    html: str,
    listing_type: ListingType,
    selectors: Optional[Dict[str, str]] = None,
) -> List[RawListing]:
    """
    Same contract as EXTRACT_LISTINGS_JS over server-rendered HTML.
    Missing descendants give "" and never raise.
    """
    sel = selectors or SELECTORS
    soup = BeautifulSoup(html or "", "lxml")
    out: List[RawListing] = []
    for card in soup.select(sel["propertyContainer"]):
        link = card.select_one(sel["detailLink"])
        row = {field: _text(card, sel[key]) for field, key in _TEXT_FIELDS.items()}
        row["detail_url"] = (link.get("href") or "") if link is not None else ""
        out.append(RawListing(listing_type=listing_type, **row))
    return out
