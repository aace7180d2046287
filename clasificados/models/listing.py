
import enum
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, func, Text, DECIMAL, Integer, ForeignKey,
    CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from clasificados.db.session import Base


class ListingCategory(str, enum.Enum):
    rent = "rent"
    items = "items"
    services = "services"

class ListingScope(str, enum.Enum):
    NEIGHBORHOOD = "NEIGHBORHOOD"
    CITY = "CITY"
    COUNTRY = "COUNTRY"

class ListingStatus(str, enum.Enum):
    active = "active"
    sold = "sold"
    rented = "rented"

class Currency(str, enum.Enum):
    CUP = "CUP"
    USD = "USD"
    EUR = "EUR"

class RentType(str, enum.Enum):
    room = "room"
    apartment = "apartment"
    house = "house"

class RentPeriod(str, enum.Enum):
    daily = "daily"
    monthly = "monthly"

class ItemSubcategory(str, enum.Enum):
    clothing = "clothing"
    electronics = "electronics"
    furniture = "furniture"
    kids = "kids"
    other = "other"

class ItemCondition(str, enum.Enum):
    new = "new"
    used = "used"

class DeliveryType(str, enum.Enum):
    pickup = "pickup"
    shipping = "shipping"

class ServiceSubcategory(str, enum.Enum):
    repair = "repair"
    cleaning = "cleaning"
    transport = "transport"
    food = "food"
    other = "other"

class ServiceFormat(str, enum.Enum):
    one_time = "one-time"
    ongoing = "ongoing"


def _in(column: str, choices) -> str:
    values = ", ".join(f"'{c.value}'" for c in choices)
    return f"{column} IN ({values})"


def _null_or_in(column: str, choices) -> str:
    return f"{column} IS NULL OR {_in(column, choices)}"


class Listing(Base):
    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint(_in("category", ListingCategory), name="ck_listings_category"),
        CheckConstraint(_in("scope", ListingScope), name="ck_listings_scope"),
        CheckConstraint(_in("status", ListingStatus), name="ck_listings_status"),
        CheckConstraint(_null_or_in("rent_type", RentType), name="ck_listings_rent_type"),
        CheckConstraint(_null_or_in("rent_period", RentPeriod), name="ck_listings_rent_period"),
        CheckConstraint(_null_or_in("item_subcategory", ItemSubcategory), name="ck_listings_item_subcategory"),
        CheckConstraint(_null_or_in("item_condition", ItemCondition), name="ck_listings_item_condition"),
        CheckConstraint(_null_or_in("delivery_type", DeliveryType), name="ck_listings_delivery_type"),
        CheckConstraint(_null_or_in("service_subcategory", ServiceSubcategory), name="ck_listings_service_subcategory"),
        CheckConstraint(_null_or_in("service_format", ServiceFormat), name="ck_listings_service_format"),
        Index("idx_listings_feed_order", "is_pinned", "is_promoted", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    scope = Column(String(20), nullable=False, index=True)
    city = Column(String(100), nullable=False, default="La Habana", index=True)
    neighborhood = Column(String(100), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(DECIMAL(10, 2), nullable=True)
    currency = Column(String(10), default="CUP")
    is_negotiable = Column(Boolean, default=False)
    status = Column(String(20), nullable=False, default="active", index=True)  # active, sold, rented

    # Rent
    rent_type = Column(String(50), nullable=True)
    rent_period = Column(String(50), nullable=True)  # NULL means "for sale"
    available_from = Column(Date, nullable=True)
    is_available_now = Column(Boolean, default=True)
    landmark = Column(Text, nullable=True)
    rooms = Column(String(10), nullable=True)
    total_area = Column(DECIMAL(10, 2), nullable=True)
    living_area = Column(DECIMAL(10, 2), nullable=True)
    floor = Column(Integer, nullable=True)
    floor_from = Column(Integer, nullable=True)
    renovation = Column(String(50), nullable=True)
    furniture = Column(String(20), nullable=True)
    appliances = Column(String(20), nullable=True)
    internet = Column(String(20), nullable=True)

    # Items
    item_subcategory = Column(String(50), nullable=True)
    item_condition = Column(String(20), nullable=True)
    item_brand = Column(String(100), nullable=True)
    delivery_type = Column(String(50), nullable=True)

    # Services
    service_subcategory = Column(String(50), nullable=True)
    service_format = Column(String(50), nullable=True)
    service_area = Column(Text, nullable=True)

    contact_telegram = Column(String(100), nullable=True)
    contact_whatsapp = Column(String(100), nullable=True)

    # Promotion (set by administrators directly)
    is_promoted = Column(Boolean, default=False)
    is_pinned = Column(Boolean, default=False)
    is_vip = Column(Boolean, default=False)
    promoted_until = Column(DateTime(timezone=True), nullable=True)

    views = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="listings")
    photos = relationship(
        "ListingPhoto",
        back_populates="listing",
        order_by="ListingPhoto.photo_order",
        cascade="all, delete-orphan",
    )


class ListingPhoto(Base):
    __tablename__ = "listing_photos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    photo_url = Column(String(500), nullable=False)
    photo_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    listing = relationship("Listing", back_populates="photos")
