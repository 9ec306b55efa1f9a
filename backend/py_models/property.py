from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class ListingType(str, Enum):
    RENT = "RENT"
    SALE = "SALE"


class PropertyType(str, Enum):
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"


class RawListing(BaseModel):
    """One listing container as rendered on the index page, untouched."""
    price: str = ""
    detail_url: str = ""
    bedrooms: str = ""
    bathrooms: str = ""
    square_meters: str = ""
    address: str = ""
    listing_type: ListingType


class NormalizedProperty(BaseModel):
    price: Decimal = Field(..., ge=0)
    currency: Optional[str] = Field(None, description="ISO-ish code: USD or ARS")
    square_meters: int = Field(..., ge=0)
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    property_type: PropertyType
    listing_type: ListingType
    address: str
    detail_url: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def title(self) -> str:
        return f"{self.property_type.value} for {self.listing_type.value}"


class RecordResult(BaseModel):
    index: int
    ok: bool
    property_id: Optional[int] = None
    location_id: Optional[int] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    record: Optional[NormalizedProperty] = None


class BatchSummary(BaseModel):
    url: str
    listing_type: ListingType
    results: List[RecordResult] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def attempted(self) -> int:
        return len(self.results)

    @computed_field  # type: ignore[misc]
    @property
    def written(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @computed_field  # type: ignore[misc]
    @property
    def skipped(self) -> int:
        return self.attempted - self.written

    @property
    def failures(self) -> List[RecordResult]:
        return [r for r in self.results if not r.ok]
