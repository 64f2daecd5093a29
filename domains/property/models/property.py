from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from enum import Enum
import re


class CamelModel(BaseModel):
    """
    Base for models that travel over the API.
    Python code uses snake_case, JSON uses camelCase; both are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums
class PropertyType(str, Enum):
    house = "house"
    villa = "villa"
    apartment = "apartment"
    penthouse = "penthouse"
    land = "land"
    commercial = "commercial"


class ListingType(str, Enum):
    sale = "sale"
    rent = "rent"


class PropertyStatus(str, Enum):
    draft = "draft"
    pending = "pending"
    published = "published"
    sold = "sold"
    rented = "rented"
    archived = "archived"


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"
    AED = "AED"
    SAR = "SAR"
    EGP = "EGP"


# Value objects
class PropertyLocation(CamelModel):
    address: Optional[str] = None
    city: str
    city_ar: Optional[str] = None
    region: Optional[str] = None
    country: str
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class PropertySpecs(CamelModel):
    bedrooms: int = Field(0, ge=0, le=50)
    bathrooms: int = Field(0, ge=0, le=30)
    area: float = Field(0, ge=0, description="Living area in m²")
    plot_area: Optional[float] = Field(None, ge=0, description="Plot size in m²")
    pool: bool = False
    garden: bool = False
    seaview: bool = False


class PropertyPrice(CamelModel):
    amount: float = Field(..., ge=0)
    currency: Currency = Currency.EUR
    price_on_request: bool = False


class PropertyFlags(CamelModel):
    featured: bool = False
    exclusive: bool = False
    off_market: bool = False


class Property(CamelModel):
    """
    A listing as the storage layer returns it.
    The search service treats it as opaque; stores filter and sort on its fields.
    """

    id: str
    slug: str
    reference_code: Optional[str] = None

    # Bilingual copy
    title: str
    title_ar: Optional[str] = None
    description: str = ""
    description_ar: Optional[str] = None

    type: PropertyType
    listing_type: ListingType = ListingType.sale
    status: PropertyStatus = PropertyStatus.draft

    location: PropertyLocation
    specs: PropertySpecs = Field(default_factory=PropertySpecs)
    price: PropertyPrice
    flags: PropertyFlags = Field(default_factory=PropertyFlags)

    features: List[str] = Field(default_factory=list)
    lifestyle: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None

    agent_id: Optional[str] = None
    view_count: int = 0

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


def generate_slug(title: str) -> str:
    """URL-friendly slug from a listing title ("Sea View Villa" -> "sea-view-villa")."""
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug)
