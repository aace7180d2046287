
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from datetime import date, datetime

from clasificados.models.listing import (
    ListingCategory, ListingScope, Currency, RentType, RentPeriod,
    ItemSubcategory, ItemCondition, DeliveryType, ServiceSubcategory, ServiceFormat,
)


# Editable listing fields. Everything is optional here: which ones are
# required depends on the operation and is checked by the listing service.
class ListingFields(BaseModel):
    category: Optional[ListingCategory] = None
    scope: Optional[ListingScope] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[Currency] = None
    is_negotiable: Optional[bool] = None

    # Rent
    rent_type: Optional[RentType] = None
    rent_period: Optional[RentPeriod] = None
    available_from: Optional[date] = None
    is_available_now: Optional[bool] = None
    landmark: Optional[str] = None
    rooms: Optional[str] = Field(None, max_length=10)
    total_area: Optional[Decimal] = Field(None, ge=0)
    living_area: Optional[Decimal] = Field(None, ge=0)
    floor: Optional[int] = None
    floor_from: Optional[int] = None
    renovation: Optional[str] = Field(None, max_length=50)
    furniture: Optional[str] = Field(None, max_length=20)
    appliances: Optional[str] = Field(None, max_length=20)
    internet: Optional[str] = Field(None, max_length=20)

    # Items
    item_subcategory: Optional[ItemSubcategory] = None
    item_condition: Optional[ItemCondition] = None
    item_brand: Optional[str] = Field(None, max_length=100)
    delivery_type: Optional[DeliveryType] = None

    # Services
    service_subcategory: Optional[ServiceSubcategory] = None
    service_format: Optional[ServiceFormat] = None
    service_area: Optional[str] = None

    contact_telegram: Optional[str] = Field(None, max_length=100)
    contact_whatsapp: Optional[str] = Field(None, max_length=100)

    @field_validator("*", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    def column_values(self) -> dict:
        """Plain column values (enum members unwrapped), omitting unset/None fields."""
        values = {}
        for field, value in self.model_dump(exclude_none=True).items():
            values[field] = value.value if hasattr(value, "value") else value
        return values


# Listing: Create (POST /listings)
class ListingCreate(ListingFields):
    # No default city here: rent listings must name one, others fall back to La Habana
    currency: Optional[Currency] = Currency.CUP
    is_negotiable: Optional[bool] = False


# Listing: Edit (PUT /listings/{id}); omitted fields keep their current value
class ListingUpdate(ListingFields):
    pass


class ListingStatusUpdate(BaseModel):
    status: str


# Query filters (GET /listings)
class ListingFilters(BaseModel):
    category: Optional[ListingCategory] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    scope: Optional[ListingScope] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    search: Optional[str] = None
    status: str = "active"
    my: bool = False
    has_rent_period: Optional[bool] = None
    rooms: Optional[str] = None
    total_area: Optional[Decimal] = None
    living_area: Optional[Decimal] = None
    floor: Optional[int] = None
    floor_from: Optional[int] = None
    renovation: Optional[str] = None
    furniture: Optional[str] = None
    appliances: Optional[str] = None
    internet: Optional[str] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


# Listing: Full response, with owner identity and ordered photo URLs
class Listing(BaseModel):
    id: int
    user_id: int
    category: str
    scope: str
    city: str
    neighborhood: Optional[str] = None
    title: str
    description: str
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    is_negotiable: bool = False
    status: str

    rent_type: Optional[str] = None
    rent_period: Optional[str] = None
    available_from: Optional[date] = None
    is_available_now: Optional[bool] = None
    landmark: Optional[str] = None
    rooms: Optional[str] = None
    total_area: Optional[Decimal] = None
    living_area: Optional[Decimal] = None
    floor: Optional[int] = None
    floor_from: Optional[int] = None
    renovation: Optional[str] = None
    furniture: Optional[str] = None
    appliances: Optional[str] = None
    internet: Optional[str] = None

    item_subcategory: Optional[str] = None
    item_condition: Optional[str] = None
    item_brand: Optional[str] = None
    delivery_type: Optional[str] = None

    service_subcategory: Optional[str] = None
    service_format: Optional[str] = None
    service_area: Optional[str] = None

    contact_telegram: Optional[str] = None
    contact_whatsapp: Optional[str] = None

    is_promoted: bool = False
    is_pinned: bool = False
    is_vip: bool = False
    promoted_until: Optional[datetime] = None

    views: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Denormalized owner
    telegram_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None

    photos: List[str] = []

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, listing) -> "Listing":
        data = {column.name: getattr(listing, column.name) for column in listing.__table__.columns}
        owner = listing.owner
        return cls(
            **data,
            telegram_id=owner.telegram_id if owner else None,
            username=owner.username if owner else None,
            first_name=owner.first_name if owner else None,
            photos=[photo.photo_url for photo in listing.photos],
        )
