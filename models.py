"""Pydantic models used throughout the Gigboard application.

Models define validation and structure for gig writes, the listing filter
request, and the pagination/rating payloads shared by the API and the
listing-view client. Wire names are camelCase; Python attributes are
snake_case.
"""
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE

Category = Literal[
    "social-media-management",
    "video-editing",
    "logo-designing",
    "seo-expert",
    "website-development",
    "web-designer",
    "wordpress-developer",
]

PackageTier = Literal["Basic", "Standard", "Premium"]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Package(CamelModel):
    """A pricing tier on a gig."""

    name: PackageTier
    price: float = Field(ge=0)
    description: str = ""
    delivery_time: int = Field(ge=1)
    revisions: int = Field(ge=0)


class SellerSummary(CamelModel):
    """Denormalized seller card stored on each gig."""

    id: str
    name: str = "Unknown Seller"
    avatar: Optional[str] = None
    level: str = "Expert"
    title: Optional[str] = None


class GigCreate(CamelModel):
    """Payload for publishing a new gig."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: Category
    cover_image: str = Field(min_length=1)
    packages: List[Package] = Field(min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    delivery_time: Optional[int] = Field(default=None, ge=1)
    skills: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    seller: Optional[SellerSummary] = None

    @field_validator("title", "skills", "requirements")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return [s.strip() for s in v]


class GigUpdate(CamelModel):
    """Partial update of a gig; unknown keys are ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[Category] = None
    cover_image: Optional[str] = None
    packages: Optional[List[Package]] = None
    price: Optional[float] = Field(default=None, ge=0)
    delivery_time: Optional[int] = Field(default=None, ge=1)
    skills: Optional[List[str]] = None
    images: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    seller: Optional[SellerSummary] = None


def _to_int(value: Any) -> Optional[int]:
    """Parse a loosely formatted integer, returning None when it is malformed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            return int(value)
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return None


class GigQuery(CamelModel):
    """Filter request for the listing discovery endpoint.

    Every field is lenient: malformed numbers are dropped (or fall back to
    their defaults) instead of failing the request, so the listing view is
    always renderable.
    """

    q: Optional[str] = None
    category: Optional[str] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    sort: str = "newest"
    delivery_time: Optional[int] = None
    level: Optional[str] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    seller_id: Optional[str] = None

    @field_validator("q", "category", "level", "seller_id", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("sort", mode="before")
    @classmethod
    def _default_sort(cls, v: Any) -> str:
        v = str(v).strip() if v is not None else ""
        return v or "newest"

    @field_validator("min_price", "max_price", "delivery_time", mode="before")
    @classmethod
    def _optional_int(cls, v: Any) -> Optional[int]:
        return _to_int(v)

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, v: Any) -> int:
        page = _to_int(v)
        if page is None or page < 1:
            return 1
        return min(page, MAX_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def _limit(cls, v: Any) -> int:
        limit = _to_int(v)
        if limit is None or limit < 1:
            return DEFAULT_PAGE_SIZE
        return min(limit, MAX_PAGE_SIZE)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_price_bound(self) -> bool:
        return self.min_price is not None or self.max_price is not None


class Pagination(CamelModel):
    """Page descriptor returned alongside a page of gigs."""

    page: int
    limit: int
    total: int
    pages: int
    has_more: bool


class RatingSummary(CamelModel):
    """Average of public review ratings for one gig."""

    gig_id: str
    average_rating: float = 0.0
    review_count: int = 0
