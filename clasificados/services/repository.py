
"""
Queries over listings and their photos.
"""
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from clasificados.models.listing import Listing, ListingPhoto, ListingCategory, ListingScope, ListingStatus
from clasificados.models.user import User
from clasificados.schemas.listing import ListingFilters

CITY_WILDCARDS = {"", "all"}


class ListingRepository:

    def __init__(self, db: Session):
        self.db = db

    def _full_query(self):
        return self.db.query(Listing).options(
            joinedload(Listing.owner),
            selectinload(Listing.photos),
        )

    def get(self, listing_id: int) -> Optional[Listing]:
        """Listing with owner and ordered photos eager-loaded."""
        return self._full_query().filter(Listing.id == listing_id).first()

    def increment_views(self, listing_id: int) -> int:
        # Keep updated_at as is: a view is not an edit
        return (
            self.db.query(Listing)
            .filter(Listing.id == listing_id)
            .update(
                {Listing.views: func.coalesce(Listing.views, 0) + 1, Listing.updated_at: Listing.updated_at},
                synchronize_session=False,
            )
        )

    # ------------------------------------------------------------------
    # Per-owner lookups used by the duplicate guard
    # ------------------------------------------------------------------

    def _owned_active(self, owner_telegram_id: int):
        return (
            self.db.query(Listing)
            .join(User, User.id == Listing.user_id)
            .filter(User.telegram_id == owner_telegram_id, Listing.status == ListingStatus.active.value)
        )

    def count_active_for_owner(self, owner_telegram_id: int) -> int:
        return self._owned_active(owner_telegram_id).count()

    def find_text_duplicate(self, owner_telegram_id: int, title: str, description: str) -> Optional[int]:
        row = (
            self._owned_active(owner_telegram_id)
            .filter(
                func.lower(func.trim(Listing.title)) == func.lower(func.trim(title)),
                func.lower(func.trim(Listing.description)) == func.lower(func.trim(description)),
            )
            .with_entities(Listing.id)
            .first()
        )
        return row.id if row else None

    def active_photo_urls_by_listing(self, owner_telegram_id: int) -> Dict[int, List[str]]:
        rows = (
            self._owned_active(owner_telegram_id)
            .join(ListingPhoto, ListingPhoto.listing_id == Listing.id)
            .with_entities(Listing.id, ListingPhoto.photo_url)
            .order_by(Listing.id, ListingPhoto.photo_order)
            .all()
        )
        grouped: Dict[int, List[str]] = defaultdict(list)
        for listing_id, photo_url in rows:
            grouped[listing_id].append(photo_url)
        return dict(grouped)

    # ------------------------------------------------------------------
    # Feed / search
    # ------------------------------------------------------------------

    def search(self, filters: ListingFilters, owner_telegram_id: Optional[int] = None) -> Tuple[int, List[Listing]]:
        query = self._full_query().filter(Listing.status == filters.status)

        if owner_telegram_id is not None:
            query = query.filter(Listing.owner.has(User.telegram_id == owner_telegram_id))

        category = filters.category.value if filters.category else None
        is_rent = category == ListingCategory.rent.value

        if category:
            query = query.filter(Listing.category == category)

        city = (filters.city or "").strip()
        if city not in CITY_WILDCARDS:
            if is_rent:
                # Rent listings are never country-wide
                query = query.filter(Listing.city == city)
            else:
                query = query.filter(
                    or_(Listing.city == city, Listing.scope == ListingScope.COUNTRY.value)
                )

        if filters.neighborhood:
            query = query.filter(
                or_(
                    Listing.neighborhood == filters.neighborhood,
                    Listing.scope.in_([ListingScope.CITY.value, ListingScope.COUNTRY.value]),
                )
            )

        if filters.scope:
            query = query.filter(Listing.scope == filters.scope.value)

        if filters.min_price is not None:
            query = query.filter(or_(Listing.price >= filters.min_price, Listing.is_negotiable == True))  # noqa: E712
        if filters.max_price is not None:
            query = query.filter(or_(Listing.price <= filters.max_price, Listing.is_negotiable == True))  # noqa: E712

        if filters.search:
            term = f"%{filters.search}%"
            query = query.filter(or_(Listing.title.ilike(term), Listing.description.ilike(term)))

        if is_rent:
            query = self._apply_rent_filters(query, filters)

        total = query.count()
        listings = (
            query.order_by(
                Listing.is_pinned.desc(),
                Listing.is_promoted.desc(),
                Listing.created_at.desc(),
                Listing.id.desc(),
            )
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return total, listings

    @staticmethod
    def _apply_rent_filters(query, filters: ListingFilters):
        # rent_period set means "for rent", unset means "for sale"
        if filters.has_rent_period is True:
            query = query.filter(Listing.rent_period.isnot(None), Listing.rent_period != "")
        elif filters.has_rent_period is False:
            query = query.filter(or_(Listing.rent_period.is_(None), Listing.rent_period == ""))

        if filters.rooms:
            query = query.filter(Listing.rooms == filters.rooms)
        if filters.total_area is not None:
            query = query.filter(Listing.total_area >= filters.total_area)
        if filters.living_area is not None:
            query = query.filter(Listing.living_area >= filters.living_area)

        if filters.floor is not None and filters.floor_from is not None:
            query = query.filter(Listing.floor == filters.floor, Listing.floor_from == filters.floor_from)
        elif filters.floor is not None:
            query = query.filter(Listing.floor == filters.floor)

        for field in ("renovation", "furniture", "appliances", "internet"):
            value = getattr(filters, field)
            if value:
                query = query.filter(getattr(Listing, field) == value)
        return query
