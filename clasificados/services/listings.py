
"""
Listing lifecycle: create, read, list, edit, status change and delete.

Validation and authorization run before anything is written. Every write
happens in a single transaction; on failure it is rolled back, any photo
files already written are removed, and the caller gets a StorageFailure.
"""
import logging
import uuid
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clasificados.core.config import Settings
from clasificados.core.errors import (
    DuplicateListing, Forbidden, InvalidInput, MinimumPhotoViolation, MissingPhoto,
    NotFound, StorageFailure, Unauthenticated,
)
from clasificados.core.permissions import AdminPolicy
from clasificados.core.telegram import Notifier
from clasificados.models.listing import Listing, ListingPhoto, ListingCategory, ListingScope, ListingStatus
from clasificados.schemas.listing import ListingCreate, ListingFilters, ListingUpdate
from clasificados.schemas.user import TelegramIdentity
from clasificados.services.duplicates import DuplicateGuard
from clasificados.services.repository import CITY_WILDCARDS, ListingRepository
from clasificados.services.users import UserDirectory
from clasificados.utils.photo_store import PhotoStore, PhotoUpload, normalize_photo_url, unique_photo_name

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
REQUIRED_FIELDS = ("category", "scope", "title", "description")
DEFAULT_CITY = "La Habana"


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def _value(v):
    return v.value if hasattr(v, "value") else v


def validate_title(title: Optional[str]) -> None:
    if title is not None and len(title) > MAX_TITLE_LENGTH:
        raise InvalidInput(f"Title is too long. Maximum {MAX_TITLE_LENGTH} characters")


def validate_price(price, is_negotiable: Optional[bool]) -> None:
    if price is None and not is_negotiable:
        raise InvalidInput("Price is required. Please specify price or mark as negotiable")


def validate_rent_location(category, scope, city: Optional[str]) -> None:
    if _value(category) != ListingCategory.rent.value:
        return
    if city is None or city.strip().lower() in CITY_WILDCARDS:
        raise InvalidInput("City is required for rent listings")
    if _value(scope) == ListingScope.COUNTRY.value:
        raise InvalidInput("Rent listings cannot have COUNTRY scope")


class ListingService:

    def __init__(
        self,
        db: Session,
        photo_store: PhotoStore,
        admin_policy: AdminPolicy,
        notifier: Notifier,
        settings: Settings,
    ):
        self.db = db
        self.photo_store = photo_store
        self.admin_policy = admin_policy
        self.notifier = notifier
        self.settings = settings
        self.repository = ListingRepository(db)
        self.users = UserDirectory(db, notifier, settings.TELEGRAM_ADMIN_ID)
        self.duplicates = DuplicateGuard(self.repository, photo_store, settings.ACTIVE_LISTING_CAP)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_photos(self, photos: List[PhotoUpload]) -> None:
        allowed = {ext.lower() for ext in self.settings.ALLOWED_PHOTO_EXTENSIONS}
        for photo in photos:
            if photo.extension not in allowed:
                raise InvalidInput("Only image files are allowed (JPG, PNG, WebP)")
            if not photo.content:
                raise InvalidInput(f"Photo '{photo.filename}' is empty")
            if len(photo.content) > self.settings.MAX_PHOTO_SIZE_BYTES:
                limit_mb = self.settings.MAX_PHOTO_SIZE_BYTES // (1024 * 1024)
                raise InvalidInput(f"File is too large. Maximum {limit_mb}MB")

    def _store_photos(self, listing: Listing, photos: List[PhotoUpload], first_order: int, saved: List[str]) -> None:
        """Write photo files and stage their rows; `saved` collects written paths for cleanup."""
        for order, photo in enumerate(photos, start=first_order):
            url = self.photo_store.save(photo.content, unique_photo_name(photo.filename))
            saved.append(url)
            listing.photos.append(ListingPhoto(photo_url=url, photo_order=order))

    def _discard_files(self, urls: Iterable[str]) -> None:
        for url in urls:
            try:
                self.photo_store.delete(url)
            except OSError as e:
                logger.warning("Error deleting photo file %s: %s", url, e)

    def _storage_failure(self, action: str, exc: Exception) -> StorageFailure:
        correlation_id = uuid.uuid4().hex[:12]
        logger.exception("Failed to %s [correlation_id=%s]", action, correlation_id)
        return StorageFailure(
            "Could not save your changes. Please try again in a moment.",
            detail=f"{correlation_id}: {exc}",
        )

    def _load(self, listing_id: int) -> Listing:
        listing = self.repository.get(listing_id)
        if not listing:
            raise NotFound("Listing not found")
        return listing

    def _authorize(self, listing: Listing, identity: Optional[TelegramIdentity], action: str) -> bool:
        """Raises unless the caller owns the listing or is an admin. Returns whether they own it."""
        if identity is None:
            raise Unauthenticated("Telegram authentication required")
        owner_id = listing.owner.telegram_id if listing.owner else None
        if not self.admin_policy.can_mutate(identity.external_id, owner_id):
            logger.warning(
                "%s denied for listing %s: actor=%s owner=%s",
                action, listing.id, identity.external_id, owner_id,
            )
            raise Forbidden("Not authorized")
        return self.admin_policy.is_owner(identity.external_id, owner_id)

    def is_admin(self, identity: Optional[TelegramIdentity]) -> bool:
        return identity is not None and self.admin_policy.is_admin(identity.external_id)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, identity: Optional[TelegramIdentity], fields: ListingCreate,
               photos: List[PhotoUpload]) -> Listing:
        if identity is None:
            raise Unauthenticated("Telegram authentication required")

        missing = [name for name in REQUIRED_FIELDS if not getattr(fields, name)]
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")
        validate_title(fields.title)
        validate_price(fields.price, fields.is_negotiable)
        validate_rent_location(fields.category, fields.scope, fields.city)

        if not photos:
            raise MissingPhoto("Please add at least one photo")
        if len(photos) > self.settings.MAX_PHOTOS_PER_LISTING:
            raise InvalidInput(f"Too many photos. Maximum {self.settings.MAX_PHOTOS_PER_LISTING}")
        self._validate_photos(photos)

        owner_id = identity.external_id
        self.duplicates.enforce_active_listing_cap(owner_id)
        if self.duplicates.check_text_duplicate(owner_id, fields.title, fields.description):
            raise DuplicateListing(
                "You already have an active listing with the same title and description. "
                "Please edit the existing listing or use a different title/description."
            )
        if self.duplicates.check_photo_duplicate(owner_id, [photo.content for photo in photos]):
            raise DuplicateListing(
                "You already have an active listing with the same photos. "
                "Please edit the existing listing or use different photos."
            )

        user_id = self.users.resolve_or_create(
            owner_id, identity.username, identity.first_name, identity.last_name
        )

        values = fields.column_values()
        values.setdefault("city", DEFAULT_CITY)
        if not values.get("contact_telegram") and identity.username:
            values["contact_telegram"] = identity.username

        listing = Listing(user_id=user_id, status=ListingStatus.active.value, **values)
        saved: List[str] = []
        try:
            self.db.add(listing)
            self._store_photos(listing, photos, 0, saved)
            self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            self.db.rollback()
            self._discard_files(saved)
            raise self._storage_failure("create listing", e)

        logger.info("Listing %s created by %s with %d photo(s)", listing.id, owner_id, len(saved))
        return self._load(listing.id)

    # ------------------------------------------------------------------
    # Read / list
    # ------------------------------------------------------------------

    def read(self, listing_id: int) -> Listing:
        """Fetch one listing, counting the view (owners' own views included)."""
        try:
            self.repository.increment_views(listing_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._storage_failure("count listing view", e)
        return self._load(listing_id)

    def list(self, filters: ListingFilters,
             identity: Optional[TelegramIdentity] = None) -> Tuple[int, List[Listing]]:
        owner_id = None
        if filters.my:
            if identity is None:
                raise Unauthenticated("Telegram authentication required for my listings")
            owner_id = identity.external_id
        return self.repository.search(filters, owner_telegram_id=owner_id)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def _resolve_photos_to_delete(self, listing: Listing, identifiers: Iterable) -> List[ListingPhoto]:
        """Match deletion entries (photo id or stored URL) against the listing's photos."""
        by_id = {str(photo.id): photo for photo in listing.photos}
        by_url = {normalize_photo_url(photo.photo_url): photo for photo in listing.photos}
        matched = {}
        for identifier in identifiers:
            key = str(identifier).strip()
            if not key:
                continue
            photo = by_id.get(key) if key.isdigit() else by_url.get(normalize_photo_url(key))
            if photo is not None:
                matched[photo.id] = photo
        return list(matched.values())

    def update(
        self,
        listing_id: int,
        identity: Optional[TelegramIdentity],
        fields: ListingUpdate,
        new_photos: Optional[List[PhotoUpload]] = None,
        photos_to_delete: Optional[List] = None,
    ) -> Listing:
        new_photos = new_photos or []
        listing = self._load(listing_id)
        self._authorize(listing, identity, "Edit")

        values = fields.column_values()

        def merged(name):
            return values[name] if name in values else getattr(listing, name)

        validate_title(values.get("title"))
        validate_rent_location(merged("category"), merged("scope"), merged("city"))
        validate_price(merged("price"), merged("is_negotiable"))
        self._validate_photos(new_photos)

        to_delete = self._resolve_photos_to_delete(listing, photos_to_delete or [])
        photos_after_edit = len(listing.photos) - len(to_delete) + len(new_photos)
        if photos_after_edit < 1:
            raise MinimumPhotoViolation("The listing must have at least one photo")
        if photos_after_edit > self.settings.MAX_PHOTOS_PER_LISTING:
            raise InvalidInput(f"Too many photos. Maximum {self.settings.MAX_PHOTOS_PER_LISTING}")

        removed_urls = [photo.photo_url for photo in to_delete]
        kept_orders = [photo.photo_order for photo in listing.photos if photo not in to_delete]
        next_order = max(kept_orders, default=-1) + 1

        saved: List[str] = []
        try:
            for field, value in values.items():
                setattr(listing, field, value)
            for photo in to_delete:
                listing.photos.remove(photo)
            self._store_photos(listing, new_photos, next_order, saved)
            listing.updated_at = func.now()
            self.db.commit()
        except (SQLAlchemyError, OSError) as e:
            self.db.rollback()
            self._discard_files(saved)
            raise self._storage_failure(f"update listing {listing_id}", e)

        # Files go only once the rows are gone for good
        self._discard_files(removed_urls)
        logger.info(
            "Listing %s edited by %s: %d field(s), -%d/+%d photo(s)",
            listing_id, identity.external_id, len(values), len(removed_urls), len(saved),
        )
        return self._load(listing_id)

    # ------------------------------------------------------------------
    # Status / delete
    # ------------------------------------------------------------------

    def set_status(self, listing_id: int, identity: Optional[TelegramIdentity], new_status: str) -> None:
        listing = self._load(listing_id)
        self._authorize(listing, identity, "Status change")
        try:
            status = ListingStatus(new_status)
        except ValueError:
            allowed = ", ".join(s.value for s in ListingStatus)
            raise InvalidInput(f"Invalid status '{new_status}'. Allowed: {allowed}")

        try:
            listing.status = status.value
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._storage_failure(f"update status of listing {listing_id}", e)
        logger.info("Listing %s marked %s by %s", listing_id, status.value, identity.external_id)

    def delete(self, listing_id: int, identity: Optional[TelegramIdentity]) -> None:
        listing = self._load(listing_id)
        is_owner = self._authorize(listing, identity, "Delete")

        owner = listing.owner
        title = listing.title
        photo_urls = [photo.photo_url for photo in listing.photos]
        try:
            self.db.delete(listing)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise self._storage_failure(f"delete listing {listing_id}", e)

        self._discard_files(photo_urls)
        logger.info("Listing %s deleted by %s", listing_id, identity.external_id)

        if not is_owner:
            self._notify_admin_deletion(listing_id, title, owner, identity)

    def _notify_admin_deletion(self, listing_id: int, title: str, owner, actor: TelegramIdentity) -> None:
        logger.info(
            "Admin %s (@%s) deleted listing %s owned by %s",
            actor.external_id, actor.username, listing_id, owner.telegram_id if owner else None,
        )
        primary_admin = self.settings.TELEGRAM_ADMIN_ID
        if not primary_admin or primary_admin.strip() == str(actor.external_id):
            return
        owner_handle = owner.username if owner and owner.username else "not set"
        owner_id = owner.telegram_id if owner else "unknown"
        self.notifier.notify(
            primary_admin,
            "An administrator deleted a listing:\n\n"
            f"Listing ID: {listing_id}\n"
            f"Owner: @{owner_handle} ({owner_id})\n"
            f"Title: {title}\n"
            f"Deleted by: @{actor.username or 'not set'} ({actor.external_id})",
        )
