"""Pydantic models for the public listing API."""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ListingType = Literal["house", "apartment", "commercial", "land", "rural"]


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class _ApiModel(BaseModel):
    """Accepts the API's camelCase keys and our snake_case names alike."""

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True)


class TransactionType(str, Enum):
    """Client-side sale/rent filter carried in ``SearchFilters.search``."""

    SALE = "sale"
    RENT = "rent"


class ListingImage(_ApiModel):
    id: Optional[str] = None
    url: str = ""
    thumbnail_url: Optional[str] = None


class Listing(_ApiModel):
    """A single property card as returned by ``GET /properties``."""

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True, extra="ignore")

    id: str
    code: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    neighborhood: Optional[str] = None
    # Prices arrive as numbers or numeric strings
    sale_price: Optional[float] = None
    rent_price: Optional[float] = None
    image_count: int = 0
    main_image: Optional[ListingImage] = None
    is_featured: bool = False
    created_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("sale_price", "rent_price", mode="before")
    @classmethod
    def _blank_price_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def has_sale_price(self) -> bool:
        return bool(self.sale_price and self.sale_price > 0)

    @property
    def has_rent_price(self) -> bool:
        return bool(self.rent_price and self.rent_price > 0)

    @property
    def main_image_url(self) -> Optional[str]:
        if self.main_image is None:
            return None
        return self.main_image.url or self.main_image.thumbnail_url or None


class SearchFilters(_ApiModel):
    """Search criteria for the listing feed.

    ``city``/``state`` come from the user's location and ``page``/``limit``
    from the feed controller; the remaining fields are what the user picks.
    """

    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True, frozen=True)

    city: Optional[str] = None
    state: Optional[str] = None
    type: Optional[ListingType] = None
    neighborhood: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    parking_spaces: Optional[int] = None
    is_featured: Optional[bool] = None
    search: Optional[TransactionType] = None
    company_id: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[Literal["ASC", "DESC"]] = None
    page: Optional[int] = None
    limit: Optional[int] = None

    def to_query_params(self) -> dict[str, str]:
        """Query string for ``GET /properties``.

        ``search`` is applied client-side and never sent.
        """
        data = self.model_dump(by_alias=True, exclude_none=True, exclude={"search"})
        params: dict[str, str] = {}
        for key, value in data.items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            elif isinstance(value, float) and value.is_integer():
                params[key] = str(int(value))
            else:
                params[key] = str(value)
        return params


class SearchPage(BaseModel):
    """One page of search results."""

    items: list[Listing] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "properties"),
    )
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("total_pages", "totalPages"),
    )

    @classmethod
    def empty(cls, limit: int = 0) -> "SearchPage":
        return cls(items=[], page=1, limit=limit, total=0, total_pages=0)
