"""
Text → typed value conversions for scraped listing fields.

Everything here is pure. Failures raise FieldParseError naming the field, the
caller decides whether to skip the record. A missing count is never turned into 0.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple
from urllib.parse import urljoin

from backend.inmoup.errors import FieldParseError
from backend.inmoup.filters import classify_property_type
from backend.py_models.property import NormalizedProperty, RawListing

# --- number helpers ---------------------------------------------------------
# First number with its separators: 120.000  •  1.250,50  •  85
_num_any = re.compile(r"\d[\d.,]*")
_thousands = {
    ".": re.compile(r"\d{1,3}(?:\.\d{3})+"),
    ",": re.compile(r"\d{1,3}(?:,\d{3})+"),
}
# SQLite INTEGER is a signed 64-bit value
_SQLITE_INT_MAX = 2 ** 63 - 1
_area_suffix = re.compile(r"\s*(?:m2|m²|mts2?|mt2|metros?(?:\s+cuadrados)?)\.?\s*$", re.I)
# USD first: 'U$S' / 'US$' also match the bare '$'
_currency_tokens = (
    (re.compile(r"u\$s|us\$|u\$d|usd|dolares|dólares", re.I), "USD"),
    (re.compile(r"\$|ars|pesos", re.I), "ARS"),
)


def _to_decimal(num: str) -> Decimal:
    """
    One rule for '.' and ',':
      - both present → the right-most one is the decimal separator
      - one kind, in 3-digit groups → thousands separator
      - otherwise → decimal separator
    """
    num = num.strip(".,")
    has_dot, has_comma = "." in num, "," in num
    if has_dot and has_comma:
        dec = "." if num.rfind(".") > num.rfind(",") else ","
        thou = "," if dec == "." else "."
        num = num.replace(thou, "")
        if num.count(dec) > 1:
            raise ValueError(f"ambiguous number: {num!r}")
        num = num.replace(dec, ".")
    elif has_dot or has_comma:
        sep = "." if has_dot else ","
        if _thousands[sep].fullmatch(num):
            num = num.replace(sep, "")
        elif num.count(sep) == 1:
            num = num.replace(sep, ".")
        else:
            raise ValueError(f"ambiguous number: {num!r}")
    return Decimal(num)


def _first_decimal(field: str, text: Optional[str]) -> Decimal:
    s = (text or "").strip()
    if not s:
        raise FieldParseError(field, text or "", "empty")
    m = _num_any.search(s)
    if not m:
        raise FieldParseError(field, s)
    try:
        return _to_decimal(m.group(0))
    except (ValueError, InvalidOperation):
        raise FieldParseError(field, s) from None


def _to_int(field: str, text: str) -> int:
    value = int(_first_decimal(field, text))
    if value > _SQLITE_INT_MAX:
        raise FieldParseError(field, text, "out of range")
    return value


def parse_area(text: Optional[str]) -> int:
    """'85m2' → 85, '120 m2 cubiertos' → 120. Decimals are truncated."""
    s = _area_suffix.sub("", (text or "").strip())
    if not s:
        raise FieldParseError("square_meters", text or "", "empty")
    return _to_int("square_meters", s)


def parse_count(text: Optional[str], field: str = "count") -> int:
    """Bedrooms / bathrooms. '3' → 3, '2 baños' → 2, '' → FieldParseError."""
    return _to_int(field, text)


def detect_currency(text: Optional[str]) -> Optional[str]:
    for rx, code in _currency_tokens:
        if rx.search(text or ""):
            return code
    return None


def parse_price(text: Optional[str]) -> Tuple[Decimal, Optional[str]]:
    """'U$S 120.000' → (Decimal('120000'), 'USD'). 'Consultar' → FieldParseError."""
    amount = _first_decimal("price", text)
    return amount, detect_currency(text)


def normalize_listing(
    raw: RawListing,
    target_url: Optional[str] = None,
    strict_property_type: bool = False,
    base_url: Optional[str] = None,
) -> NormalizedProperty:
    price, currency = parse_price(raw.price)
    address = " ".join(raw.address.split())
    if not address:
        raise FieldParseError("address", raw.address, "empty")
    return NormalizedProperty(
        price=price,
        currency=currency,
        square_meters=parse_area(raw.square_meters),
        bedrooms=parse_count(raw.bedrooms, "bedrooms"),
        bathrooms=parse_count(raw.bathrooms, "bathrooms"),
        property_type=classify_property_type(
            raw.detail_url, fallback_url=target_url, strict=strict_property_type
        ),
        listing_type=raw.listing_type,
        address=address,
        detail_url=urljoin(base_url, raw.detail_url) if base_url and raw.detail_url else raw.detail_url,
    )
