"""Request and response bodies for the JSON API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.models.listing import Listing


class ListingCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(ge=0)
    description: str | None = None
    facilities: str | None = None


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ReviewUpsertRequest(BaseModel):
    # 1..5 range checked by ReviewService.
    rating: int
    text: str | None = None


class InquiryCreateRequest(BaseModel):
    listing_id: int
    message: str


class ListingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    location: str
    price: Decimal
    description: str | None
    facilities: str | None
    owner_id: int | None
    status: str
    expires_at: datetime
    rating: Decimal
    review_count: int
    created_at: datetime
    last_updated: datetime

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingResponse":
        return cls.model_validate(listing)


class ListingPage(BaseModel):
    total: int
    items: list[ListingResponse]
