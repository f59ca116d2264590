"""Product and search records exchanged with the research toolset."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PLACEHOLDER_IMAGE_URL = "https://placehold.co/600x600"
ALTERNATIVE_PLACEHOLDER_IMAGE_URL = "https://placehold.co/300x300"
UNKNOWN_SOURCE_URL = "https://example.com/unknown"


class Price(BaseModel):
    amount: float = 0.0
    currency: str = "USD"


class ProductSpec(BaseModel):
    key: str
    value: str


class ExtractedProduct(BaseModel):
    """Product fields pulled out of a retailer page."""

    title: str
    image_url: str = PLACEHOLDER_IMAGE_URL
    price: Price = Field(default_factory=Price)
    specs: List[ProductSpec] = Field(default_factory=list)
    source_url: str = UNKNOWN_SOURCE_URL


class SearchResult(BaseModel):
    title: str
    url: str
    snippet: Optional[str] = None


class Alternative(BaseModel):
    """A competing listing shown next to the top match."""

    title: str
    price: Price = Field(default_factory=Price)
    image_url: str = ALTERNATIVE_PLACEHOLDER_IMAGE_URL
    reason: str
    source_url: Optional[str] = None


class BuyResult(BaseModel):
    status: Literal["ok", "failed"]
    message: str
