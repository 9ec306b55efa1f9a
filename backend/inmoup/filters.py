from typing import Dict, Iterable, Optional
from urllib.parse import quote

from backend.inmoup.errors import ClassificationError
from backend.py_models.property import ListingType, PropertyType

BASE_URL = "https://inmoup.com.ar"

# path markers, checked in order
LISTING_MARKERS = (
    ("alquiler", ListingType.RENT),
    ("venta", ListingType.SALE),
)
PROPERTY_MARKERS = (
    ("casa", PropertyType.HOUSE),
    ("departamento", PropertyType.APARTMENT),
)


def _match(text: str, markers):
    t = (text or "").lower()
    for marker, value in markers:
        if marker in t:
            return value
    return None


def classify_listing_type(url: str) -> ListingType:
    """RENT / SALE from the URL path. Never guesses."""
    found = _match(url, LISTING_MARKERS)
    if found is None:
        raise ClassificationError(f"Unknown listing type in URL: {url!r}")
    return found


def classify_property_type(
    url: str,
    fallback_url: Optional[str] = None,
    strict: bool = False,
) -> PropertyType:
    """
    HOUSE / APARTMENT from a detail link, then from `fallback_url` (usually the
    index URL) when the link carries no marker.
    Unknown → APARTMENT, or ClassificationError when `strict`.
    """
    found = _match(url, PROPERTY_MARKERS)
    if found is None and fallback_url:
        found = _match(fallback_url, PROPERTY_MARKERS)
    if found is not None:
        return found
    if strict:
        raise ClassificationError(f"Unknown property type in URL: {url!r}")
    return PropertyType.APARTMENT


def build_search_url(
    property_kind: str = "departamentos",
    listing_kind: str = "alquiler",
    localities: Iterable[int] = (19, 1, 2, 8),
    limit: int = 100,
    min_price: int = 0,
    max_price: int = 0,
    currency: int = 1,
) -> str:
    """
    Build an inmoup index URL, e.g. 'departamentos-en-alquiler' or 'casas-en-venta'.
    Defaults reproduce the stock Mendoza apartments-for-rent search.
    """
    if listing_kind not in {"alquiler", "venta"}:
        raise ValueError(f"listing_kind must be 'alquiler' or 'venta', got: {listing_kind!r}")
    params: Dict[str, str] = {
        "favoritos": "0",
        "limit": str(limit),
        "prevEstadoMap": "",
        "localidades": ",".join(str(x) for x in localities),
        "lastZoom": "13",
        "precio[min]": str(min_price),
        "precio[max]": str(max_price),
        "moneda": str(currency),
        "sup_cubierta[min]": "",
        "sup_cubierta[max]": "",
        "expensas[min]": "",
        "expensas[max]": "",
    }
    # keep [] literal, the site does not decode %5B%5D in these keys
    query = "&".join(f"{k}={quote(v, safe='')}" for k, v in params.items())
    return f"{BASE_URL}/{property_kind}-en-{listing_kind}?{query}"
